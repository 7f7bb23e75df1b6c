"""Grammar extensions for the tokenizer engine.

Every extension is a callable taking the ``MarkdownIt`` instance being
configured. The factories below cover the constructs markdownlint style
tooling expects on top of CommonMark; any plain markdown-it plugin can be
passed alongside them.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Tuple

from markdown_it import MarkdownIt
from mdit_py_plugins.colon_fence import colon_fence_plugin
from mdit_py_plugins.dollarmath import dollarmath_plugin
from mdit_py_plugins.footnote import footnote_plugin

from ..shared.config import ConfigValidationError

# Construct names accepted by disable(), mapped to markdown-it rule names
CONSTRUCT_RULES: Dict[str, Tuple[str, ...]] = {
    "attention": ("emphasis",),
    "autolink": ("autolink",),
    "blockQuote": ("blockquote",),
    "characterEscape": ("escape",),
    "characterReference": ("entity",),
    "codeFenced": ("fence",),
    "codeIndented": ("code",),
    "codeText": ("backticks",),
    "definition": ("reference",),
    "gfmAutolinkLiteral": ("linkify",),
    "gfmTable": ("table",),
    "headingAtx": ("heading",),
    "htmlFlow": ("html_block",),
    "htmlText": ("html_inline",),
    "labelStartImage": ("image",),
    "labelStartLink": ("link",),
    "list": ("list",),
    "setextUnderline": ("lheading",),
    "thematicBreak": ("hr",),
}


@dataclass
class Extension:
    """Named grammar extension applied to a markdown-it instance.

    Attributes:
        name: Extension name used in log records
        plugin: markdown-it plugin function, called as ``plugin(md, **options)``
        options: Keyword options for the plugin
    """

    name: str
    plugin: Callable[..., Any]
    options: Dict[str, Any] = field(default_factory=dict)

    def __call__(self, md: MarkdownIt) -> None:
        md.use(self.plugin, **self.options)


def _move_rule_before(ruler: Any, name: str, before: str) -> None:
    """Reorder an already registered rule so it runs ahead of ``before``."""
    names = ruler.get_all_rules()
    if name not in names or before not in names:
        return
    rules = ruler.__rules__
    rule = rules.pop(names.index(name))
    rules.insert(ruler.get_all_rules().index(before), rule)
    ruler.__cache__ = None


def _footnotes(md: MarkdownIt) -> None:
    footnote_plugin(md, inline=False)
    # Keep definitions where they were written instead of collecting them at the end
    md.disable("footnote_tail", ignoreInvalid=True)
    # A resolvable [^label] is a footnote call, not a failed link label
    _move_rule_before(md.inline.ruler, "footnote_ref", "link")


def _linkify(md: MarkdownIt) -> None:
    md.options["linkify"] = True
    md.enable("linkify")


def _table(md: MarkdownIt) -> None:
    md.enable("table")


def _disable_rules(md: MarkdownIt, rules: Tuple[str, ...]) -> None:
    md.disable(list(rules), ignoreInvalid=True)


def directive() -> Extension:
    """Container directives written as colon fences (``:::name``)."""
    return Extension("directive", colon_fence_plugin)


def gfm_autolink_literal() -> Extension:
    """Bare URL, ``www.`` and e-mail autolinks."""
    return Extension("gfmAutolinkLiteral", _linkify)


def gfm_footnote() -> Extension:
    """Footnote calls and definitions, with definitions kept in document order."""
    return Extension("gfmFootnote", _footnotes)


def gfm_table() -> Extension:
    """Pipe tables."""
    return Extension("gfmTable", _table)


def math() -> Extension:
    """Dollar math, inline (``$x$``) and block (``$$``)."""
    return Extension("math", dollarmath_plugin)


def disable(*constructs: str) -> Extension:
    """Turn off recognition of the named constructs.

    Args:
        *constructs: Construct names such as ``"codeIndented"`` or ``"htmlFlow"``

    Raises:
        ConfigValidationError: If a construct name is not known
    """
    rules = []
    for construct in constructs:
        if construct not in CONSTRUCT_RULES:
            raise ConfigValidationError(
                f"Unknown construct: {construct}",
                field_name="disable",
                suggestions=sorted(CONSTRUCT_RULES),
            )
        rules.extend(CONSTRUCT_RULES[construct])
    return Extension(
        "disable:" + ",".join(constructs), _disable_rules, {"rules": tuple(rules)}
    )


def default_extensions() -> Tuple[Extension, ...]:
    """Extensions every parse applies before the caller's own."""
    return (directive(), gfm_autolink_literal(), gfm_footnote(), gfm_table(), math())
