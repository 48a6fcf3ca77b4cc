"""Message templates and the default message formatter.

The evaluation engine never renders text itself. Each violation carries a
template, a quantity and named parameters; a formatter turns those into a
string. Any callable with the ``Formatter`` signature can replace the
default, e.g. one backed by a translation catalogue.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

PRIMARY_TEMPLATE = "The password is not good enough: :error"


@dataclass(frozen=True)
class MessageTemplate:
    """A message with singular and plural forms.

    Attributes:
        singular: Form used when the quantity is exactly 1.
        plural: Form used for every other quantity (including 0).
    """

    singular: str
    plural: str

    @classmethod
    def parse(cls, text: str) -> MessageTemplate:
        """Parse the ``"singular|plural"`` form.

        A template without ``|`` uses the same text for both forms.

        Args:
            text: The raw template string.

        Returns:
            The parsed template.
        """
        if "|" not in text:
            return cls(singular=text, plural=text)
        singular, plural = text.split("|", 1)
        return cls(singular=singular, plural=plural)

    def __str__(self) -> str:
        if self.singular == self.plural:
            return self.singular
        return f"{self.singular}|{self.plural}"


Formatter = Callable[[MessageTemplate, int, Mapping[str, object]], str]


def format_message(
    template: MessageTemplate,
    quantity: int,
    params: Mapping[str, object],
) -> str:
    """Render a template: choose the plural form, then substitute parameters.

    Placeholders are written ``:name``. Longer names are replaced first so
    that ``:min`` never clobbers part of a ``:minimum`` placeholder.

    Args:
        template: The message template.
        quantity: Count used to choose between singular and plural.
        params: Values for the ``:name`` placeholders.

    Returns:
        The rendered message.
    """
    text = template.singular if quantity == 1 else template.plural
    for name in sorted(params, key=len, reverse=True):
        text = text.replace(f":{name}", str(params[name]))
    return text
