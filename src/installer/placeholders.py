"""Rewrites registry placeholder tokens into project import paths."""

from __future__ import annotations

import re
from typing import Optional

from constants import ComponentTypes
from project.paths import ComponentContext, PathResolver

# $TOKEN$.js in the raw template; must run before the tokens are substituted.
_PLACEHOLDER_JS = re.compile(r"\$(UTILS|COMPONENTS|HOOKS|LIB)\$\.js\b")

_JS_EXTENSION_PATTERNS = [
    re.compile(r"""(import\s+[^"']*["'])([^"']+)\.js(["'])"""),
    re.compile(r"""(export\s+[^"']*["'])([^"']+)\.js(["'])"""),
    re.compile(r"""(import\s*\(\s*["'])([^"']+)\.js(["']\s*\))"""),
]


class PlaceholderProcessor:
    """Replaces ``$UTILS$``, ``$COMPONENTS$``, ``$HOOKS$`` and ``$LIB$``.

    In TypeScript projects ``.js`` extensions are also dropped from import and
    export specifiers.
    """

    def __init__(self, resolver: PathResolver, typescript: bool):
        self.resolver = resolver
        self.typescript = typescript

    def _components_alias(self, context: Optional[ComponentContext]) -> str:
        if context is None:
            return self.resolver.aliases.components
        return self.resolver.alias_for_type(context.component_type)

    def _hooks_alias(self) -> str:
        return self.resolver.alias_for_type(ComponentTypes.HOOK.value)

    def _lib_alias(self) -> str:
        return self.resolver.alias_for_type(ComponentTypes.LIB.value)

    def process(self, content: str, context: Optional[ComponentContext] = None) -> str:
        if self.typescript:
            content = _PLACEHOLDER_JS.sub(r"$\1$", content)

        resolve = self.resolver.resolve_import_path
        replacements = {
            "$UTILS$": resolve(self.resolver.aliases.utils),
            "$COMPONENTS$": resolve(self._components_alias(context)),
            "$HOOKS$": resolve(self._hooks_alias()),
            "$LIB$": resolve(self._lib_alias()),
        }
        for token, value in replacements.items():
            content = content.replace(token, value)

        if self.typescript:
            for pattern in _JS_EXTENSION_PATTERNS:
                content = pattern.sub(r"\1\2\3", content)
        return content
