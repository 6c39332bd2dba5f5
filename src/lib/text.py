"""
Text helpers for directive arguments, spliced content and trace output
"""

import re


_SLASH_ESCAPE = re.compile(r'\\(.?)', re.DOTALL)
_SLASH_SPECIAL = re.compile(r'([\\"\'])')
_NON_NEWLINE = re.compile(r'[^\r\n]+')


def slashes_strip(text: str) -> str:
    r"""
    Remove backslash escaping from a quoted directive argument

    `\\` becomes `\`, `\0` becomes NUL, a trailing lone backslash is dropped
    and any other escaped character stands for itself.

    Example:
        >>> slashes_strip(r'dir\"name\".js')
        'dir"name".js'
    """
    def unescape(match: re.Match) -> str:
        char = match.group(1)
        if char == '0':
            return '\x00'
        return char

    return _SLASH_ESCAPE.sub(unescape, text)


def slashes_add(text: str) -> str:
    r"""
    Escape backslashes, quotes and NUL characters

    Inverse of slashes_strip().

    Example:
        >>> slashes_add('say "hi"')
        'say \\"hi\\"'
    """
    return _SLASH_SPECIAL.sub(r'\\\1', text).replace('\x00', '\\0')


def text_indent(text: str, indent: str) -> str:
    """
    Prefix every line of text with indent

    The empty remainder after a final line terminator is not a line and
    is left alone, so indented content keeps its trailing newline as is.

    Example:
        >>> text_indent("a\\nb\\n", "  ")
        '  a\\n  b\\n'
    """
    if not indent or not text:
        return text
    lines = text.split('\n')
    tail = lines.pop() if lines[-1] == '' else None
    indented = '\n'.join(indent + line for line in lines)
    return indented + '\n' if tail is not None else indented


def newlines_keep(text: str) -> str:
    """Strip everything from text except its line terminators"""
    return _NON_NEWLINE.sub('', text)


def newlines_show(text: str) -> str:
    """
    Render text for single-line trace output

    Example:
        >>> newlines_show("test();\\r\\n")
        '[test();\\\\n]'
    """
    return '[' + text.replace('\r', '').replace('\n', '\\n') + ']'
