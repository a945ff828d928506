"""JS对象字面量解析

12306 的 initDc 页面把 ticketInfoForPassengerForm 直接写成 JS 对象，
不是合法 JSON。这里只支持页面里会出现的子集：
对象、数组、单/双引号字符串、无引号键名、尾逗号、\\uXXXX 转义、
// 与 /* */ 注释、数字、true/false/null/undefined。
"""

import re
from typing import Any, Dict, List, Tuple

from ..exceptions import JsLiteralError

_IDENT = re.compile(r"[A-Za-z_$][\w$]*")
_NUMBER = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
_ESCAPES = {
    '"': '"', "'": "'", "\\": "\\", "/": "/",
    "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t", "0": "\0",
}
_KEYWORDS = {"true": True, "false": False, "null": None, "undefined": None}


class _Parser:
    def __init__(self, text: str, pos: int = 0):
        self.text = text
        self.pos = pos

    def error(self, message: str) -> JsLiteralError:
        return JsLiteralError(message, self.text[self.pos:self.pos + 40], self.pos)

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def skip_ws(self):
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch.isspace():
                self.pos += 1
            elif text.startswith("//", self.pos):
                end = text.find("\n", self.pos)
                self.pos = len(text) if end == -1 else end + 1
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                if end == -1:
                    raise self.error("注释未闭合")
                self.pos = end + 2
            else:
                break

    def expect(self, ch: str):
        self.skip_ws()
        if self.peek() != ch:
            raise self.error(f"期望 {ch!r}")
        self.pos += 1

    def value(self) -> Any:
        self.skip_ws()
        ch = self.peek()
        if ch == "{":
            return self.obj()
        if ch == "[":
            return self.array()
        if ch in ("'", '"'):
            return self.string()
        m = _NUMBER.match(self.text, self.pos)
        if m:
            self.pos = m.end()
            literal = m.group(0)
            if any(c in literal for c in ".eE"):
                return float(literal)
            return int(literal)
        m = _IDENT.match(self.text, self.pos)
        if m and m.group(0) in _KEYWORDS:
            self.pos = m.end()
            return _KEYWORDS[m.group(0)]
        if not ch:
            raise self.error("意外的结尾")
        raise self.error("无法识别的值")

    def key(self) -> str:
        self.skip_ws()
        ch = self.peek()
        if ch in ("'", '"'):
            return self.string()
        m = _IDENT.match(self.text, self.pos) or _NUMBER.match(self.text, self.pos)
        if not m:
            raise self.error("无法识别的键名")
        self.pos = m.end()
        return m.group(0)

    def obj(self) -> Dict[str, Any]:
        self.expect("{")
        result: Dict[str, Any] = {}
        while True:
            self.skip_ws()
            if self.peek() == "}":
                self.pos += 1
                return result
            k = self.key()
            self.expect(":")
            result[k] = self.value()
            self.skip_ws()
            ch = self.peek()
            if ch == ",":
                self.pos += 1
            elif ch == "}":
                self.pos += 1
                return result
            else:
                raise self.error("对象成员之间缺少逗号")

    def array(self) -> List[Any]:
        self.expect("[")
        result: List[Any] = []
        while True:
            self.skip_ws()
            if self.peek() == "]":
                self.pos += 1
                return result
            result.append(self.value())
            self.skip_ws()
            ch = self.peek()
            if ch == ",":
                self.pos += 1
            elif ch == "]":
                self.pos += 1
                return result
            else:
                raise self.error("数组元素之间缺少逗号")

    def string(self) -> str:
        quote = self.text[self.pos]
        start = self.pos
        self.pos += 1
        out = []
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == quote:
                self.pos += 1
                return "".join(out)
            if ch == "\\":
                esc = text[self.pos + 1:self.pos + 2]
                if esc == "u":
                    digits = text[self.pos + 2:self.pos + 6]
                    if not re.fullmatch(r"[0-9a-fA-F]{4}", digits):
                        raise self.error("非法的 \\u 转义")
                    out.append(chr(int(digits, 16)))
                    self.pos += 6
                    continue
                if esc == "\n":
                    # 行尾续行
                    self.pos += 2
                    continue
                out.append(_ESCAPES.get(esc, esc))
                self.pos += 2
                continue
            out.append(ch)
            self.pos += 1
        self.pos = start
        raise self.error("字符串未闭合")


def parse_js_value(text: str, pos: int = 0) -> Tuple[Any, int]:
    """从 pos 开始解析一个值，返回 (值, 结束位置)"""
    parser = _Parser(text, pos)
    result = parser.value()
    return result, parser.pos


def parse_js_object(text: str) -> Dict[str, Any]:
    """解析完整的JS对象字面量，末尾只允许空白、注释和分号"""
    parser = _Parser(text)
    parser.skip_ws()
    if parser.peek() != "{":
        raise parser.error("期望对象")
    result = parser.obj()
    parser.skip_ws()
    if parser.peek() == ";":
        parser.pos += 1
        parser.skip_ws()
    if parser.pos != len(text):
        raise parser.error("对象之后存在多余内容")
    return result
