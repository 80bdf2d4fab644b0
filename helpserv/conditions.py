"""Condition evaluator for ``#if`` directives in help documents.

A condition is a single line: an optional run of ``!`` negations
followed by a keyword and, for some keywords, one argument::

    halfops | owner | protect | anyprivs | auth
    priv <privilege>
    module <module name>

Keywords are case-sensitive. Anything unknown, empty or malformed
evaluates to False, so a broken help document hides a gated block
instead of revealing it.
"""

from typing import Tuple

import structlog

from .context import CapabilityContext, ModuleRegistry, SourceInfo
from .models import AuthMode, ServerFeatures

logger = structlog.get_logger("helpserv.help")

_BLANKS = " \t"


def _split_word(text: str) -> Tuple[str, str]:
    """Split off the first space/tab-delimited word.

    Returns (word, rest) with leading blanks of rest removed.
    """
    for i, ch in enumerate(text):
        if ch in _BLANKS:
            return text[:i], text[i + 1:].lstrip(_BLANKS)
    return text, ""


class ConditionEvaluator:
    """Evaluates help conditions for an actor.

    Args:
        features: Static server feature flags.
        capabilities: Privilege lookups for the actor.
        modules: Loaded-module lookups.
    """

    def __init__(
        self,
        features: ServerFeatures,
        capabilities: CapabilityContext,
        modules: ModuleRegistry,
    ):
        self.features = features
        self.capabilities = capabilities
        self.modules = modules

    def evaluate(self, source: SourceInfo, expression: str) -> bool:
        """Return the truth of ``expression`` for ``source``. Never raises."""
        negate = False
        while True:
            expression = expression.lstrip(_BLANKS)
            if not expression.startswith("!"):
                break
            negate = not negate
            expression = expression[1:]

        keyword, rest = _split_word(expression)
        try:
            result = self._dispatch(source, keyword, rest)
        except Exception as e:
            logger.warning(
                "help_condition_error",
                keyword=keyword,
                error=str(e),
                error_type=type(e).__name__,
            )
            # Fail closed on the keyword itself; negation still applies,
            # so "!priv x" is True when the privilege lookup fails.
            result = False
        return result != negate

    def _dispatch(self, source: SourceInfo, keyword: str, rest: str) -> bool:
        if keyword == "halfops":
            return bool(self.features.uses_halfops)
        if keyword == "owner":
            return bool(self.features.uses_owner)
        if keyword == "protect":
            return bool(self.features.uses_protect)
        if keyword == "anyprivs":
            return bool(self.capabilities.has_any_privs(source))
        if keyword == "priv":
            priv, _ = _split_word(rest)
            if not priv:
                return False
            return bool(self.capabilities.has_priv(source, priv))
        if keyword == "module":
            name, _ = _split_word(rest)
            if not name:
                return False
            return bool(self.modules.is_loaded(name))
        if keyword == "auth":
            return self.features.auth_mode != AuthMode.NONE

        logger.debug("help_condition_unknown", keyword=keyword)
        return False
