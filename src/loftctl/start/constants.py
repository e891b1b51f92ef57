"""Names, selectors and timings shared by the loft start modules."""

# Workload
DEFAULT_NAMESPACE = "loft"
DEFAULT_LOCAL_PORT = 9898
LOFT_DEPLOYMENT = "loft"
LOFT_INGRESS = "loft-ingress"
LOFT_POD_SELECTOR = "app=loft"
LOFT_CONTAINER_PORT = 443
RELEASE_LABEL = "release"

# Helm
LOFT_RELEASE = "loft"
LOFT_CHART = "loft"
LOFT_CHART_REPO = "https://charts.devspace.sh/"

INGRESS_NGINX_RELEASE = "ingress-nginx"
INGRESS_NGINX_CHART = "ingress-nginx"
INGRESS_NGINX_NAMESPACE = "ingress-nginx"
INGRESS_NGINX_REPO = "https://kubernetes.github.io/ingress-nginx"
INGRESS_NGINX_SECRET_SELECTOR = "name=ingress-nginx,owner=helm,status=deployed"

# Cluster-scoped objects left behind by helm uninstall
LOFT_WEBHOOK = "loft"
LOFT_API_SERVICE = "v1.management.loft.sh"
LOFT_USER_GROUP = "storage.loft.sh"
LOFT_USER_VERSION = "v1"
LOFT_USER_PLURAL = "users"
LOFT_ADMIN_USER = "admin"

# Metadata put on the ingress controller release secret
APP_LABEL = "loft.sh/app"
APP_URL_ANNOTATION = "loft.sh/url"

# Poll intervals and timeouts (seconds)
UNINSTALL_POLL_INTERVAL = 1
UNINSTALL_POLL_TIMEOUT = 10 * 60
READY_POLL_INTERVAL = 3
READY_POLL_TIMEOUT = 10 * 60
TUNNEL_POLL_INTERVAL = 1
TUNNEL_POLL_TIMEOUT = 10 * 60
DNS_POLL_INTERVAL = 5
DNS_POLL_TIMEOUT = 24 * 60 * 60
PROBE_REQUEST_TIMEOUT = 10
