"""Function extraction for C sources using the Pygments C lexer.

For each file:
1. Blank out every branch of an ``#if`` chain but one, then tokenize
   with ``CLexer``, dropping whitespace and comments
2. Track braces; at file scope, ``name ( ... ) {`` opens a definition
3. Inside a body, ``name (`` is a call site (member calls are skipped)
4. Record definition bounds, signature, and callees with their lines
"""

from __future__ import annotations

import bisect
import logging
import re
from pathlib import Path
from typing import Iterator, NamedTuple

from pygments.lexers import CLexer
from pygments.token import Token

from uaftriage.errors import SourceDirNotFoundError
from uaftriage.skills.registry.records import Callee, FunctionRecord, Registry

logger = logging.getLogger(__name__)

C_SUFFIXES = (".c", ".h")

_CONDITIONAL_RE = re.compile(r"^\s*#\s*(if|ifdef|ifndef|elif|else|endif)\b(.*)")


class _Tok(NamedTuple):
    pos: int
    ttype: object
    value: str

    @property
    def punct(self) -> str:
        """Value for punctuation and operators, empty otherwise."""
        if self.ttype in Token.Punctuation or self.ttype in Token.Operator:
            return self.value
        return ""

    @property
    def is_name(self) -> bool:
        return self.ttype in Token.Name

    @property
    def is_preproc(self) -> bool:
        return self.ttype in Token.Comment.Preproc or self.ttype in Token.Comment.PreprocFile


def scan_directory(source_dir: str) -> Registry:
    """Walk *source_dir* and extract every C function definition.

    Files that cannot be read are logged and skipped. Paths in the
    resulting records are relative to *source_dir*.
    """
    root = Path(source_dir).resolve()
    if not root.is_dir():
        raise SourceDirNotFoundError(str(root))

    records: list[FunctionRecord] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix not in C_SUFFIXES:
            continue
        try:
            source = path.read_text(errors="replace")
        except OSError as exc:
            logger.warning("skipping unreadable file %s: %s", path, exc)
            continue
        records.extend(extract_functions(source, path.relative_to(root).as_posix()))

    logger.info(
        "scanned source directory",
        extra={"source_dir": str(root), "functions": len(records)},
    )
    return Registry.from_records(records)


def extract_functions(source: str, filename: str) -> list[FunctionRecord]:
    """Extract function definitions from a single C translation unit."""
    tokens = _tokenize(_mask_inactive_branches(source))
    line_starts = _line_starts(source)
    lines = source.splitlines()

    def line_of(pos: int) -> int:
        return bisect.bisect_right(line_starts, pos)

    records: list[FunctionRecord] = []
    decl_start: int | None = None
    i = 0
    while i < len(tokens):
        tok = tokens[i]

        if tok.is_preproc or tok.punct in (";", "}"):
            decl_start = None
            i += 1
            continue

        if tok.punct == "{":
            # struct/union/enum/initializer bodies at file scope
            i = _skip_block(tokens, i) + 1
            decl_start = None
            continue

        if decl_start is None:
            decl_start = tok.pos

        if tok.is_name and _punct_at(tokens, i + 1) == "(":
            close = _matching(tokens, i + 1, "(", ")")
            if close is not None and _punct_at(tokens, close + 1) == "{":
                body_open = close + 1
                body_close = _skip_block(tokens, body_open)
                last = tokens[body_close]
                end_pos = last.pos + len(last.value)
                records.append(
                    FunctionRecord(
                        name=tok.value,
                        file=filename,
                        start_line=line_of(decl_start),
                        end_line=line_of(end_pos - 1),
                        signature=" ".join(
                            source[decl_start:tokens[body_open].pos].split()
                        ),
                        definition=source[decl_start:end_pos],
                        callees=tuple(
                            _calls_in(tokens, body_open + 1, body_close, lines, line_of)
                        ),
                    )
                )
                i = body_close + 1
                decl_start = None
                continue
        i += 1

    return records


def _tokenize(source: str) -> list[_Tok]:
    lexer = CLexer(stripnl=False, ensurenl=False)
    tokens: list[_Tok] = []
    for pos, ttype, value in lexer.get_tokens_unprocessed(source):
        tok = _Tok(pos, ttype, value)
        if tok.is_preproc:
            tokens.append(tok)
        elif ttype in Token.Comment or not value.strip():
            continue
        else:
            tokens.append(tok)
    return tokens


def _calls_in(tokens, start, stop, lines, line_of) -> Iterator[Callee]:
    """Yield call sites between token indices [start, stop)."""
    for j in range(start, stop):
        tok = tokens[j]
        if not tok.is_name or _punct_at(tokens, j + 1) != "(":
            continue
        if _is_member_access(tokens, j):
            continue
        line = line_of(tok.pos)
        snippet = lines[line - 1].strip() if 0 < line <= len(lines) else ""
        yield Callee(name=tok.value, line=line, snippet=snippet)


def _is_member_access(tokens, j: int) -> bool:
    prev = _punct_at(tokens, j - 1)
    if prev in (".", "->"):
        return True
    # CLexer emits "->" as two operator tokens
    return prev == ">" and _punct_at(tokens, j - 2) == "-"


def _punct_at(tokens, i: int) -> str:
    if 0 <= i < len(tokens):
        return tokens[i].punct
    return ""


def _matching(tokens, i: int, open_ch: str, close_ch: str) -> int | None:
    """Index of the token closing the bracket opened at *i*, or None."""
    depth = 0
    for j in range(i, len(tokens)):
        p = tokens[j].punct
        if p == open_ch:
            depth += 1
        elif p == close_ch:
            depth -= 1
            if depth == 0:
                return j
    return None


def _skip_block(tokens, i: int) -> int:
    """Index of the ``}`` matching the ``{`` at *i*; last token if unbalanced."""
    close = _matching(tokens, i, "{", "}")
    return close if close is not None else len(tokens) - 1


def _line_starts(source: str) -> list[int]:
    starts = [0]
    for idx, ch in enumerate(source):
        if ch == "\n":
            starts.append(idx + 1)
    return starts


def _mask_inactive_branches(source: str) -> str:
    """Replace the text of all but one branch of each conditional with spaces.

    The first branch is kept, except under ``#if 0`` where the first
    alternative is kept instead. Directive lines stay, and line lengths
    are unchanged so token offsets still index into *source*.
    """
    out: list[str] = []
    # one [active, taken] pair per open conditional
    stack: list[list[bool]] = []
    for line in source.splitlines(keepends=True):
        m = _CONDITIONAL_RE.match(line)
        if m:
            directive = m.group(1)
            if directive in ("if", "ifdef", "ifndef"):
                live = not (directive == "if" and m.group(2).strip() == "0")
                stack.append([live, live])
            elif directive in ("elif", "else") and stack:
                frame = stack[-1]
                frame[0] = not frame[1]
                frame[1] = True
            elif directive == "endif" and stack:
                stack.pop()
            out.append(line)
        elif all(active for active, _ in stack):
            out.append(line)
        else:
            out.append("".join(ch if ch in "\r\n" else " " for ch in line))
    return "".join(out)
