"""
Directive registry tests
"""

import re

import pytest

from directivepp.lib.directives import DirectiveRegistry, MARKER, value_coerce
from directivepp.models.directives import DirectiveCategory, DirectiveSpec, DIRECTIVE_KEYWORDS
from directivepp.models.frames import ConditionalFrame
from directivepp.lib.stack import ConditionalStack
from directivepp.lib.preprocessor import Preprocessor
from directivepp.lib.errors import UnexpectedDirectiveError


class TestRegistry:
    """Registered directive set"""

    def test_all_keywords_registered(self):
        registry = DirectiveRegistry()
        assert sorted(registry.specs) == sorted(DIRECTIVE_KEYWORDS)
        for keyword in DIRECTIVE_KEYWORDS:
            assert callable(registry.get(keyword))
        assert registry.get("pragma") is None

    def test_categories(self):
        registry = DirectiveRegistry()
        names = lambda category: sorted(spec.name for spec in registry.directives_listByCategory(category))
        assert names(DirectiveCategory.INCLUDE) == ["include", "include_once"]
        assert names(DirectiveCategory.CONDITIONAL) == ["if", "ifdef", "ifndef"]
        assert names(DirectiveCategory.TERMINATOR) == ["elif", "else", "endif"]
        assert names(DirectiveCategory.SUBSTITUTION) == ["put"]
        assert names(DirectiveCategory.BINDING) == ["define"]

    def test_unknown_keyword_rejected(self):
        registry = DirectiveRegistry()
        spec = DirectiveSpec(
            name="pragma",
            category=DirectiveCategory.BINDING,
            description="not a directive",
            pattern=re.compile(r".*"),
            handler=lambda *args: None,
        )
        with pytest.raises(ValueError):
            registry.register(spec)


class TestMarker:
    """Directive marker recognition"""

    @pytest.mark.parametrize(
        "line, keyword",
        [
            ("// #include_once \"a\"", "include_once"),
            ("  // #ifndef X", "ifndef"),
            ("x = 1; // #put X", "put"),
            ("//   #endif", "endif"),
        ],
    )
    def test_recognized(self, line, keyword):
        assert MARKER.search(line).group("keyword") == keyword

    @pytest.mark.parametrize("line", ["//#ifdef X", "// #ifdefined X", "# ifdef X", "// #pragma once"])
    def test_not_recognized(self, line):
        assert MARKER.search(line) is None


class TestValueCoerce:
    @pytest.mark.parametrize(
        "value, text",
        [(None, ""), (True, "true"), (False, "false"), (3, "3"), ("s", "s"), (1.5, "1.5")],
    )
    def test_coerce(self, value, text):
        assert value_coerce(value) == text


class TestConditionalStack:
    """Emptiness is checked by the stack itself"""

    def test_pop_empty(self):
        with pytest.raises(UnexpectedDirectiveError) as excinfo:
            ConditionalStack().pop()
        assert excinfo.value.offset is None
        assert str(excinfo.value) == "Unexpected"

    def test_location_attached_by_scanner(self):
        """The scanner names the stray terminator"""
        with pytest.raises(UnexpectedDirectiveError) as excinfo:
            Preprocessor("x\n// #else\n", error_source_ahead=8).process({})
        assert excinfo.value.kind == "else"
        assert excinfo.value.offset == 2
        assert str(excinfo.value) == "Unexpected #else: // #else..."

    def test_push_pop(self):
        stack = ConditionalStack()
        frame = ConditionalFrame(keyword="if", decision=True, blockStart=0, contentStart=5)
        stack.push(frame)
        assert stack.active
        assert stack.peek() is frame
        assert stack.pop() is frame
        assert len(stack) == 0
