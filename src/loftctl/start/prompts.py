"""Interactive questions asked by loft start.

Every multiple-choice question has its own Enum whose values are the
option labels shown to the operator. Code branches on the enum member,
never on the label text.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import TypeVar

import questionary
from questionary import Choice

ChoiceT = TypeVar("ChoiceT", bound=Enum)

Validator = Callable[[str], "str | None"]


class IngressUpgradeChoice(Enum):
    """Existing install without ingress: add one now?"""

    NO = "No"
    YES = "Yes, I want to deploy an ingress to let other people access loft."


class TunnelFallbackChoice(Enum):
    """Existing remote install is unreachable: port-forward instead?"""

    YES = "Yes"
    NO = "No, I want to see the DNS message again"


class LocalClusterChoice(Enum):
    """Cluster endpoint looks local: is that right?"""

    YES = "Yes"
    REMOTE = "No, I am using a remote cluster and want to access loft on a public domain"


class RemoteClusterChoice(Enum):
    """Cluster endpoint looks remote: is that right?"""

    YES = "Yes"
    LOCAL = "No, my cluster is running locally (docker desktop, minikube, kind etc.)"


class AccessMethodChoice(Enum):
    """How a remote cluster's loft should be reached."""

    PORT_FORWARDING = "via port-forwarding (no other configuration needed)"
    INGRESS = "via ingress (you will need to configure DNS)"


class IngressControllerChoice(Enum):
    """Install ingress-nginx before deploying an ingress?"""

    INSTALL = "Yes"
    SKIP = "No, I already have an ingress controller installed"


class Prompter:
    """Ask questions on the terminal using questionary."""

    def select(
        self,
        question: str,
        choices: type[ChoiceT],
        default: ChoiceT | None = None,
    ) -> ChoiceT:
        """Ask a multiple-choice question.

        Args:
            question: Question text.
            choices: Enum whose members are the options.
            default: Pre-selected member.

        Returns:
            The selected enum member.

        Raises:
            KeyboardInterrupt: If the operator cancels (Ctrl+C).
        """
        options = [Choice(title=member.value, value=member) for member in choices]
        default_option = next((o for o in options if o.value is default), None)
        answer = questionary.select(question, choices=options, default=default_option).ask()
        if answer is None:
            raise KeyboardInterrupt("Cancelled by user")
        return answer

    def select_value(self, question: str, values: list[str], default: str | None = None) -> str:
        """Ask the operator to pick one of ``values``."""
        answer = questionary.select(question, choices=values, default=default).ask()
        if answer is None:
            raise KeyboardInterrupt("Cancelled by user")
        return answer

    def text(self, question: str, validate: Validator | None = None) -> str:
        """Ask for free text, re-prompting until ``validate`` accepts it.

        Args:
            question: Question text.
            validate: Returns an error message for a bad answer, None otherwise.
        """
        answer = questionary.text(
            question,
            validate=(lambda value: validate(value) or True) if validate else None,
        ).ask()
        if answer is None:
            raise KeyboardInterrupt("Cancelled by user")
        return answer.strip()
