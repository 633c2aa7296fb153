"""
Parameter-schema inference from script source.

Scripts declare their tunable parameters in a getParameterDefinitions()
function returning an array of object literals:

    function getParameterDefinitions() {
      return [
        { name: 'teeth', type: 'int', initial: 20, min: 8, caption: 'Teeth' },
        { name: 'label', type: 'text', initial: "Pinion" },
      ];
    }

A small tokenizer and a recursive-descent parser read that array as data.
Only literals are understood (arrays, objects, strings, numbers, booleans,
null); anything else, such as a variable or a call, becomes None and the
parser carries on. Text outside the declaration is never matched, so a
string that merely looks like a declaration cannot produce a parameter.

Scripts without a declaration fall back to the defaults of a destructuring
pattern such as ``const { width = 10, solid = true } = params || {}``.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

ParameterType = Literal["number", "text", "choice", "boolean"]

_TYPE_MAP = {
    "float": "number",
    "int": "number",
    "number": "number",
    "text": "text",
    "checkbox": "boolean",
    "choice": "choice",
}

_LITERAL_IDENTS = {"true": True, "false": False, "null": None, "undefined": None}
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<comment>//[^\n]*|/\*.*?(?:\*/|\Z))
  | (?P<number>0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<ident>[A-Za-z_$][A-Za-z0-9_$]*)
  | (?P<string>'(?:\\.|[^'\\\n])*(?:'|$)|"(?:\\.|[^"\\\n])*(?:"|$)|`(?:\\.|[^`\\])*(?:`|\Z))
  | (?P<punct>=>|\|\||[\[\]{}():,=;])
  | (?P<other>.)
    """,
    re.VERBOSE | re.DOTALL | re.MULTILINE,
)


class ParameterDefinition(BaseModel):
    """One parameter a script exposes for sliders and inputs."""
    model_config = ConfigDict(extra='ignore')

    name: str
    type: ParameterType
    value: Any
    initial: Any = None
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    label: str
    choices: Optional[List[str]] = None


@dataclass(frozen=True)
class Token:
    kind: str  # number | ident | string | template | punct | other | eof
    text: str
    start: int
    end: int
    value: Any = None


def tokenize(source: str) -> List[Token]:
    """Split source into tokens, dropping whitespace and comments."""
    tokens = []
    for match in _TOKEN_RE.finditer(source):
        kind = match.lastgroup
        text = match.group()
        if kind in ("ws", "comment"):
            continue
        value = None
        if kind == "number":
            value = float(int(text, 16)) if text[:2] in ("0x", "0X") else float(text)
        elif kind == "string":
            if text.startswith("`") and "${" in text:
                kind = "template"
            else:
                value = _unquote(text)
        tokens.append(Token(kind, text, match.start(), match.end(), value))
    end = len(source)
    tokens.append(Token("eof", "", end, end))
    return tokens


def _unquote(text: str) -> str:
    quote = text[0]
    body = text[1:-1] if len(text) > 1 and text.endswith(quote) else text[1:]
    out = []
    chars = iter(body)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, "")
            out.append(_ESCAPES.get(nxt, nxt))
        else:
            out.append(ch)
    return "".join(out)


class _Unparsed:
    """Marker for a value that is not a literal."""

    def __init__(self, raw: str):
        self.raw = raw


class LiteralParser:
    """Recursive-descent parser over a token list for JS literal values."""

    def __init__(self, source: str, tokens: Optional[List[Token]] = None):
        self.source = source
        self.tokens = tokens if tokens is not None else tokenize(source)
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind != "eof":
            self.pos += 1
        return token

    def at(self, text: str) -> bool:
        token = self.current
        return token.kind in ("punct", "other") and token.text == text

    def expect(self, text: str) -> bool:
        if self.at(text):
            self.advance()
            return True
        return False

    def parse_value(self) -> Any:
        """Parse one value; non-literals come back as _Unparsed."""
        token = self.current
        if self.at("["):
            return self.parse_array()
        if self.at("{"):
            return self.parse_object()
        if token.kind in ("string", "number"):
            self.advance()
            if self._at_value_end():
                return token.value
            return self._skip_expression(token.start)
        if token.kind == "other" and token.text in "-+":
            start = token.start
            self.advance()
            number = self.current
            if number.kind == "number":
                self.advance()
                if self._at_value_end():
                    return -number.value if token.text == "-" else number.value
            return self._skip_expression(start)
        if token.kind == "ident" and token.text in _LITERAL_IDENTS:
            self.advance()
            if self._at_value_end():
                return _LITERAL_IDENTS[token.text]
            return self._skip_expression(token.start)
        return self._skip_expression(token.start)

    def parse_array(self) -> List[Any]:
        self.expect("[")
        items = []
        while not self.at("]") and self.current.kind != "eof":
            if self.expect(","):
                continue
            items.append(self.parse_value())
            if not self.expect(","):
                break
        self.expect("]")
        return items

    def parse_object(self) -> dict:
        self.expect("{")
        obj = {}
        while not self.at("}") and self.current.kind != "eof":
            if self.expect(","):
                continue
            key_token = self.current
            if key_token.kind in ("ident", "string", "number"):
                self.advance()
                key = key_token.value if key_token.kind == "string" else key_token.text
                if self.expect(":"):
                    obj[key] = self.parse_value()
                elif self.at(",") or self.at("}"):
                    obj[key] = _Unparsed(key_token.text)  # shorthand property
                else:
                    obj[key] = self._skip_expression(key_token.start)
            else:
                self._skip_expression(key_token.start)
            if not self.expect(","):
                break
        self.expect("}")
        return obj

    def _at_value_end(self) -> bool:
        return self.current.kind == "eof" or any(self.at(t) for t in (",", "]", "}", ")", ";"))

    def _skip_expression(self, start: int) -> _Unparsed:
        """Skip to the next ',' or closer at this nesting level."""
        depth = 0
        end = start
        while self.current.kind != "eof":
            token = self.current
            if token.kind == "punct" and token.text in "[{(":
                depth += 1
            elif token.kind == "punct" and token.text in "]})":
                if depth == 0:
                    break
                depth -= 1
            elif depth == 0 and token.kind == "punct" and token.text in (",", ";"):
                break
            end = token.end
            self.advance()
        return _Unparsed(self.source[start:end].strip())


def _clean(value: Any) -> Any:
    """Replace unparsed markers with None, recursively."""
    if isinstance(value, _Unparsed):
        return None
    if isinstance(value, list):
        return [_clean(v) for v in value]
    if isinstance(value, dict):
        return {k: _clean(v) for k, v in value.items()}
    return value


def _find_definitions(tokens: List[Token]) -> Optional[int]:
    """Index of the '[' opening the definitions array, if declared."""
    for i, token in enumerate(tokens):
        if token.kind != "ident" or token.text != "getParameterDefinitions" or i == 0:
            continue
        prev = tokens[i - 1]
        declared = (
            (prev.kind == "ident" and prev.text == "function")
            or (prev.kind == "ident" and prev.text in ("const", "let", "var")
                and tokens[i + 1].text == "=")
        )
        if not declared:
            continue
        for j in range(i + 1, len(tokens)):
            if tokens[j].kind == "punct" and tokens[j].text == "[":
                return j
        return None
    return None


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = re.match(r"\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?", value)
        if match:
            return float(match.group())
    return None


def _definition_from_object(obj: dict) -> Optional[ParameterDefinition]:
    name = obj.get("name")
    if not isinstance(name, str) or not re.fullmatch(r"\w+", name):
        return None
    declared_type = obj.get("type") if isinstance(obj.get("type"), str) else None
    param_type = _TYPE_MAP.get(declared_type, "number")
    initial = obj.get("initial", obj.get("checked"))

    if param_type == "number":
        number = _number(initial)
        value: Any = 0.0 if number is None else number
        if declared_type == "int" and float(value).is_integer():
            value = int(value)
    elif param_type == "boolean":
        value = initial is True or initial == "true"
    else:
        value = "" if initial is None else _choice_text(initial)

    step = _number(obj.get("step"))
    if step is None:
        step = 1.0 if declared_type == "int" else 0.1

    caption = obj.get("caption")
    choices = obj.get("values", obj.get("choices"))
    if isinstance(choices, list):
        choices = [_choice_text(c) for c in choices if c is not None]
    else:
        choices = None

    return ParameterDefinition(
        name=name,
        type=param_type,
        value=value,
        initial=initial,
        min=_number(obj.get("min")),
        max=_number(obj.get("max")),
        step=step,
        label=caption if isinstance(caption, str) and caption else name,
        choices=choices,
    )


def _choice_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _humanize(name: str) -> str:
    """widthMm -> 'width Mm'"""
    return re.sub(r"([A-Z])", r" \1", name).strip()


def _destructured_defaults(source: str, tokens: List[Token]) -> List[ParameterDefinition]:
    """Defaults of `const { a = 1, b = true } = params || {}`."""
    for i, token in enumerate(tokens):
        if not (token.kind == "ident" and token.text in ("const", "let")):
            continue
        if tokens[i + 1].text != "{":
            continue
        # Find the closing brace and check what is being destructured
        depth = 0
        close = None
        for j in range(i + 1, len(tokens)):
            if tokens[j].text == "{" and tokens[j].kind == "punct":
                depth += 1
            elif tokens[j].text == "}" and tokens[j].kind == "punct":
                depth -= 1
                if depth == 0:
                    close = j
                    break
        if close is None or close + 2 >= len(tokens):
            continue
        if tokens[close + 1].text != "=" or tokens[close + 2].text not in ("params", "parameters"):
            continue

        parser = LiteralParser(source, tokens)
        parser.pos = i + 2
        params = []
        while parser.pos < close:
            name_token = parser.current
            if name_token.kind != "ident":
                parser.advance()
                continue
            parser.advance()
            if not parser.expect("="):
                parser.expect(",")
                continue
            value = parser.parse_value()
            parser.expect(",")
            label = _humanize(name_token.text)
            if isinstance(value, bool):
                params.append(ParameterDefinition(name=name_token.text, type="boolean", value=value, label=label))
            elif isinstance(value, float):
                params.append(ParameterDefinition(
                    name=name_token.text,
                    type="number",
                    value=value,
                    label=label,
                    step=1.0 if value.is_integer() else 0.1,
                ))
            else:
                text = value.raw if isinstance(value, _Unparsed) else ("" if value is None else str(value))
                params.append(ParameterDefinition(
                    name=name_token.text, type="text", value=text.replace("'", "").replace('"', ""), label=label,
                ))
        return params
    return []


def parse_literal(source: str) -> Any:
    """Parse a single literal; non-literal parts become None."""
    return _clean(LiteralParser(source).parse_value())


def extract_parameters(source: str) -> List[ParameterDefinition]:
    """
    Infer the parameters a script exposes.

    Args:
        source: Script text

    Returns:
        ParameterDefinition list in declaration order (empty if none found)
    """
    tokens = tokenize(source)
    params: List[ParameterDefinition] = []

    start = _find_definitions(tokens)
    if start is not None:
        parser = LiteralParser(source, tokens)
        parser.pos = start
        for item in _clean(parser.parse_array()):
            if isinstance(item, dict):
                definition = _definition_from_object(item)
                if definition is not None:
                    params.append(definition)
        logger.debug(f"Found {len(params)} declared parameters")

    if not params:
        params = _destructured_defaults(source, tokens)
        if params:
            logger.debug(f"Found {len(params)} destructured parameter defaults")

    return params


__all__ = [
    "ParameterDefinition",
    "Token",
    "tokenize",
    "LiteralParser",
    "parse_literal",
    "extract_parameters",
]
