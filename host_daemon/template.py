"""Placeholder substitution for task, run and rc script templates."""

import re
from typing import Mapping

# ${NAME} or $NAME, shell style. Positional shell parameters such as $1 are
# not placeholders and pass through untouched.
_PLACEHOLDER = re.compile(r'\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)')

KEEP_PLACEHOLDER = '${{{key}}}'


def render(template: str, values: Mapping[str, str], unexpanded: str = KEEP_PLACEHOLDER) -> str:
    """
    Substitute placeholders in a template.

    Args:
        template: Template text containing ``$KEY`` or ``${KEY}`` placeholders.
        values: Replacement text for each recognized key.
        unexpanded: Format string used for keys missing from ``values``. It
            receives the key as ``{key}``, so the rendered output still names
            the placeholder that was not recognized.

    Returns:
        The rendered text.
    """
    def substitute(match: re.Match) -> str:
        key = match.group(1) or match.group(2)
        if key in values:
            return str(values[key])
        return unexpanded.format(key=key)

    return _PLACEHOLDER.sub(substitute, template)
