"""
Directive implementations for directivepp

Each directive rewrites the source buffer around its match and repositions
the scan cursor. Uses DirectiveSpec for the argument grammar and metadata.

Handlers share the signature (match, clause, preprocessor, state) -> None:
    match: DirectiveMatch for the `// #keyword` marker
    clause: re.Match of the keyword-specific argument grammar
    preprocessor: Preprocessor providing bindings, resolver, tracer, splicing
    state: ProcessState of the running process() call
"""

import re
from typing import Any, Callable, Dict, List, Optional

from ..models.directives import DirectiveSpec, DirectiveCategory, DIRECTIVE_KEYWORDS, keyword_is
from ..models.frames import ConditionalFrame
from .text import slashes_strip, text_indent, newlines_keep, newlines_show


# `// #keyword` anywhere on a line; the spaces before the comment are the indent
MARKER = re.compile(
    r'(?P<indent>[ \t]*)//[ ]+#(?P<keyword>' + '|'.join(DIRECTIVE_KEYWORDS) + r')\b'
)

_EOL = r'(?P<eol>\r\n|\r|\n|\Z)'

# Argument grammars, matched right after the keyword
INCLUDE_ARGS = re.compile(r'[ ]+"(?P<path>[^"\\]*(?:\\.[^"\\]*)*)"[ \t]*' + _EOL)
NAME_ARGS = re.compile(r'[ ]+(?P<test>[A-Za-z_$][\w$]*)[ \t]*' + _EOL)
EXPRESSION_ARGS = re.compile(r'[ ]+(?P<test>[^\r\n]*?\S)[ \t]*' + _EOL)
TERMINATOR_ARGS = re.compile(r'(?:[ ]+(?P<test>[^\r\n]*?))?[ \t]*' + _EOL)
PUT_ARGS = re.compile(r'[ ]+(?P<expr>[^\r\n]*?\S)[ \t]*(?=[\r\n]|\Z)')
DEFINE_ARGS = re.compile(r'[ ]+(?P<expr>[^\r\n]*?\S)[ \t]*' + _EOL)


def value_coerce(value: Any) -> str:
    """Text spliced in for a #put value"""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


class DirectiveRegistry:
    """
    Registry of directive specifications and handlers

    Maps directive keywords to DirectiveSpec objects containing the
    argument grammar and processing handler.
    """

    def __init__(self) -> None:
        """Initialize the directive registry and register all built-in directives"""
        self.specs: Dict[str, DirectiveSpec] = {}
        self.includeDirectives_register()
        self.conditionalDirectives_register()
        self.substitutionDirectives_register()
        self.bindingDirectives_register()

    def register(self, spec: DirectiveSpec) -> None:
        """Register a directive specification"""
        if not keyword_is(spec.name):
            raise ValueError(f"'{spec.name}' is not a directive keyword")
        self.specs[spec.name] = spec

    def get(self, name: str) -> Optional[Callable[..., None]]:
        """Get directive handler by keyword"""
        spec = self.specs.get(name)
        return spec.handler if spec else None

    def spec_get(self, name: str) -> Optional[DirectiveSpec]:
        """Get full directive specification by keyword"""
        return self.specs.get(name)

    def directives_listByCategory(self, category: DirectiveCategory) -> List[DirectiveSpec]:
        """Get all directives in a category"""
        return [spec for spec in self.specs.values() if spec.category == category]

    def includeDirectives_register(self) -> None:
        """Register #include and #include_once"""

        def include_handler(match: Any, clause: Any, pp: Any, state: Any) -> None:
            """Splice file (or glob) content in place of the directive"""
            key = slashes_strip(clause.group('path'))
            eol = clause.group('eol')
            pp.tracer.detail("incl", key)

            if not state.stack.active:
                # Inside an excluded block: the text is dropped at #endif anyway
                pp.tracer.detail("skip", "excluded block")
                replacement = eol if state.preserveLineNumbers else ''
                pp.buffer_splice(state, match.start, clause.end(), replacement)
                state.cursor = match.start + len(replacement)
                return

            if match.keyword == 'include_once' and key in state.included:
                pp.tracer.detail("skip", "already included")
                replacement = eol if state.preserveLineNumbers else ''
                pp.buffer_splice(state, match.start, clause.end(), replacement)
                state.cursor = match.start + len(replacement)
                return

            result = pp.resolver.resolve(key)
            pp.tracer.include(result)
            state.included.add(key)

            replacement = text_indent(result.content, match.indent)
            if eol and replacement and not replacement.endswith(('\n', '\r')):
                replacement += eol
            elif not replacement and state.preserveLineNumbers:
                replacement = eol
            pp.buffer_splice(state, match.start, clause.end(), replacement)

            # Included text may hold directives: rescan the enclosing block
            frame = state.stack.peek()
            state.cursor = frame.contentStart if frame else 0

        for name, description in (
            ('include', 'Splice the content of a file or glob'),
            ('include_once', 'Splice a file or glob unless already included'),
        ):
            self.register(DirectiveSpec(
                name=name,
                category=DirectiveCategory.INCLUDE,
                description=description,
                pattern=INCLUDE_ARGS,
                handler=include_handler,
                examples=[f'// #{name} "lib/util.js"', f'// #{name} "parts/*.js"'],
            ))

    def conditionalDirectives_register(self) -> None:
        """Register #if/#ifdef/#ifndef and their #elif/#else/#endif terminators"""

        def open_handler(match: Any, clause: Any, pp: Any, state: Any) -> None:
            """Push a frame; the buffer is rewritten when the block closes"""
            test = clause.group('test')
            pp.tracer.detail("test", test)

            if not state.stack.active:
                decision, taken = False, True
            else:
                if match.keyword == 'ifdef':
                    decision = pp.bindings.is_defined(test)
                elif match.keyword == 'ifndef':
                    decision = not pp.bindings.is_defined(test)
                else:
                    decision = bool(pp.bindings.evaluate(test))
                taken = decision
            pp.tracer.detail("value", decision)

            frame = ConditionalFrame(
                keyword=match.keyword,
                decision=decision,
                blockStart=match.start,
                contentStart=clause.end(),
                lead=clause.group('eol'),
                taken=taken,
            )
            state.stack.push(frame)
            pp.tracer.push(frame)
            state.cursor = clause.end()

        def close_handler(match: Any, clause: Any, pp: Any, state: Any) -> None:
            """Pop a frame and splice its body back in (or drop it)"""
            frame = state.stack.pop()
            pp.tracer.pop(frame)

            body = state.source[frame.contentStart:match.start]
            pp.tracer.body(frame.decision, body)
            replacement = body if frame.decision else ''
            if state.preserveLineNumbers:
                kept = body if frame.decision else newlines_keep(body)
                replacement = frame.lead + kept + clause.group('eol')

            pp.buffer_splice(state, frame.blockStart, clause.end(), replacement)
            state.cursor = frame.blockStart + len(replacement)

            if match.keyword == 'endif':
                return

            # #elif/#else open the next branch of the same chain
            if frame.taken:
                decision = False
            elif match.keyword == 'else':
                decision = not frame.decision
            else:
                test = clause.group('test')
                pp.tracer.detail("test", test)
                decision = bool(pp.bindings.evaluate(test))
            pp.tracer.detail("value", decision)

            branch = ConditionalFrame(
                keyword=match.keyword,
                decision=decision,
                blockStart=state.cursor,
                contentStart=state.cursor,
                taken=frame.taken or decision,
            )
            state.stack.push(branch)
            pp.tracer.push(branch)

        for name, pattern, description in (
            ('ifdef', NAME_ARGS, 'Keep the block if a runtime define exists'),
            ('ifndef', NAME_ARGS, 'Keep the block if a runtime define is absent'),
            ('if', EXPRESSION_ARGS, 'Keep the block if an expression is truthy'),
        ):
            self.register(DirectiveSpec(
                name=name,
                category=DirectiveCategory.CONDITIONAL,
                description=description,
                pattern=pattern,
                handler=open_handler,
                examples=[f'// #{name} DEBUG'],
            ))

        for name, pattern, description in (
            ('elif', EXPRESSION_ARGS, 'Close the branch and test another expression'),
            ('else', TERMINATOR_ARGS, 'Close the branch and keep the rest if nothing was kept'),
            ('endif', TERMINATOR_ARGS, 'Close the conditional block'),
        ):
            self.register(DirectiveSpec(
                name=name,
                category=DirectiveCategory.TERMINATOR,
                description=description,
                pattern=pattern,
                handler=close_handler,
                examples=[f'// #{name}'],
            ))

    def substitutionDirectives_register(self) -> None:
        """Register #put"""

        def put_handler(match: Any, clause: Any, pp: Any, state: Any) -> None:
            """Replace the directive with the value of its expression"""
            expression = clause.group('expr')
            pp.tracer.detail("expr", expression)

            if state.stack.active:
                text = match.indent + value_coerce(pp.bindings.evaluate(expression))
                pp.tracer.detail("value", newlines_show(text))
            else:
                text = ''
                pp.tracer.detail("skip", "excluded block")

            pp.buffer_splice(state, match.start, clause.end(), text)
            state.cursor = match.start + len(text)

        self.register(DirectiveSpec(
            name='put',
            category=DirectiveCategory.SUBSTITUTION,
            description='Replace the directive with the value of an expression',
            pattern=PUT_ARGS,
            handler=put_handler,
            examples=['// #put "var version = \'" + VERSION + "\';"'],
        ))

    def bindingDirectives_register(self) -> None:
        """Register #define"""

        def define_handler(match: Any, clause: Any, pp: Any, state: Any) -> None:
            """Record an inline define and drop the directive line"""
            declaration = clause.group('expr')
            pp.tracer.detail("define", declaration)

            if state.stack.active:
                pp.bindings.define_append(declaration)
            else:
                pp.tracer.detail("skip", "excluded block")

            replacement = clause.group('eol') if state.preserveLineNumbers else ''
            pp.buffer_splice(state, match.start, clause.end(), replacement)
            state.cursor = match.start

        self.register(DirectiveSpec(
            name='define',
            category=DirectiveCategory.BINDING,
            description='Bind names for later expressions',
            pattern=DEFINE_ARGS,
            handler=define_handler,
            examples=['// #define BUILD = VERSION + "-dev"', '// #define def twice(x): return x * 2'],
        ))
