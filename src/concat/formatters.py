from __future__ import annotations

import json
import re
from typing import Mapping
from xml.etree import ElementTree
from xml.sax.saxutils import escape, quoteattr

from .core import Config, MatchedFile
from .defaults import NO_FILES_MESSAGE, RULE_WIDTH
from .util import version_sorted

RULE_OPEN = "-" * RULE_WIDTH
RULE_HEAD = "*" * RULE_WIDTH
RULE_CLOSE = "=" * RULE_WIDTH


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _listing(values, *, empty: str) -> str:
    return ", ".join(values) if values else empty


def _param_rows(config: Config, matched_count: int) -> list[tuple[str, str, list[str] | str]]:
    """(label, xml tag, value) rows shared by both encodings. List values repeat as <value> children."""
    return [
        ("Inputs", "inputs", list(config.inputs)),
        ("Format", "format", config.format.value),
        ("Recursive", "recursive", _flag(config.recursive)),
        ("Include hidden", "includeHidden", _flag(config.include_hidden)),
        ("Exclude non-text", "excludeNonText", _flag(config.exclude_non_text)),
        ("Case sensitive", "caseSensitive", _flag(config.case_sensitive)),
        ("Include extensions", "extensionsInclude", sorted(config.extensions_include)),
        ("Exclude extensions", "extensionsExclude", sorted(config.extensions_exclude)),
        ("Include patterns", "includePatterns", list(config.include_globs)),
        ("Exclude patterns", "excludePatterns", list(config.exclude_globs)),
        ("Matched files", "matchedCount", str(matched_count)),
    ]


class TextFormatter:
    """
    Plain text with fixed-width rule lines. File bytes are copied verbatim;
    nothing in them is escaped, including text that looks like a rule line.
    """

    def _section(self, heading: str, lines: list[str]) -> str:
        return "\n".join([RULE_OPEN, f"# {heading}", RULE_HEAD, *lines, RULE_CLOSE, "", ""])

    def _groups(self, groups: Mapping[str, tuple[str, ...]]) -> list[str]:
        return [
            f"{json.dumps(directory)}: [{', '.join(json.dumps(name) for name in groups[directory])}]"
            for directory in version_sorted(groups)
        ]

    def begin(self) -> str:
        return ""

    def title(self, title: str) -> str:
        return "\n".join([RULE_OPEN, f"# {title}", RULE_CLOSE, "", ""])

    def params(self, config: Config, matched_count: int) -> str:
        lines = []
        for label, _tag, value in _param_rows(config, matched_count):
            if isinstance(value, list):
                value = _listing(value, empty="All" if label.startswith("Include") else "None")
            lines.append(f"{label:<23}{value}")
        return self._section("Parameters", lines)

    def dir_list(self, groups: Mapping[str, tuple[str, ...]]) -> str:
        return self._section("Matched Files Directory List", self._groups(groups) or ["(none)"])

    def tree(self, tree_text: str, *, context: str) -> str:
        return self._section(f"Directory Tree (from {context})", tree_text.rstrip("\n").split("\n"))

    def structure(self, groups: Mapping[str, tuple[str, ...]]) -> str:
        return self._section("Directory Structure", self._groups(groups) or ["(none)"])

    def files_begin(self, total: int) -> str:
        return "\n".join([RULE_OPEN, f"# File Contents ({total} files)", RULE_HEAD, ""])

    def no_files(self) -> str:
        return f"{NO_FILES_MESSAGE}\n{RULE_CLOSE}\n"

    def file_header(self, matched: MatchedFile, index: int, total: int, *, show_paths: bool) -> str:
        lines = ["", RULE_OPEN, f"# File {index}/{total}: {matched.name}"]
        if show_paths:
            lines.append(f"# Relative path: {matched.relative_path}")
            lines.append(f"# Absolute path: {matched.absolute_path}")
        lines.extend([RULE_HEAD, ""])
        return "\n".join(lines)

    def body(self, blob: bytes) -> bytes:
        if blob and not blob.endswith(b"\n"):
            return blob + b"\n"
        return blob

    def file_error(self, matched: MatchedFile, error: OSError) -> str:
        reason = error.strerror or str(error)
        return f"[ERROR: Cannot read file '{matched.absolute_path}': {reason}]\n"

    def file_footer(self, matched: MatchedFile, *, show_paths: bool) -> str:
        label = matched.relative_path if show_paths else matched.name
        return f"\n# EOF: {label}\n{RULE_CLOSE}\n"

    def files_end(self) -> str:
        return ""

    def end(self) -> str:
        return ""


# Characters outside the XML 1.0 Char production
_XML_INVALID = re.compile("[^\u0009\u000a\u000d\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")
_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>\s*")


def _xml_text(text: str) -> str:
    return escape(_XML_INVALID.sub("\ufffd", text))


def _xml_attr(text: str) -> str:
    return quoteattr(_XML_INVALID.sub("\ufffd", text))


def _decode_text(blob: bytes) -> str:
    try:
        return blob.decode("utf-8")
    except UnicodeDecodeError:
        return blob.decode("latin-1")


def cdata(text: str) -> str:
    """
    Wrap text in CDATA. Every ']]>' is split across two adjacent sections
    (']]' closes the first, '>' opens the next) so the section cannot end early.
    """
    safe = _XML_INVALID.sub("\ufffd", text).replace("]]>", "]]]]><![CDATA[>")
    return f"<![CDATA[{safe}]]>"


def _as_xml_fragment(text: str) -> str | None:
    fragment = _XML_DECLARATION.sub("", text).strip()
    if not fragment.startswith("<"):
        return None
    try:
        ElementTree.fromstring(fragment)
    except ElementTree.ParseError:
        return None
    return fragment


class XmlFormatter:
    """
    One <concatenation> root element. Names and paths are entity-escaped;
    file contents go into CDATA sections.
    """

    def _groups(self, tag: str, groups: Mapping[str, tuple[str, ...]]) -> str:
        if not groups:
            return f"  <{tag}/>\n"
        parts = [f"  <{tag}>\n"]
        for directory in version_sorted(groups):
            parts.append(f"    <directory path={_xml_attr(directory)}>\n")
            parts.extend(f"      <entry>{_xml_text(name)}</entry>\n" for name in groups[directory])
            parts.append("    </directory>\n")
        parts.append(f"  </{tag}>\n")
        return "".join(parts)

    def begin(self) -> str:
        return '<?xml version="1.0" encoding="UTF-8"?>\n<concatenation>\n'

    def title(self, title: str) -> str:
        return f"  <title>{_xml_text(title)}</title>\n"

    def params(self, config: Config, matched_count: int) -> str:
        parts = ["  <parameters>\n"]
        for _label, tag, values in _param_rows(config, matched_count):
            if isinstance(values, str):
                parts.append(f"    <{tag}>{_xml_text(values)}</{tag}>\n")
            elif not values:
                parts.append(f"    <{tag}/>\n")
            else:
                parts.append(f"    <{tag}>\n")
                parts.extend(f"      <value>{_xml_text(value)}</value>\n" for value in values)
                parts.append(f"    </{tag}>\n")
        parts.append("  </parameters>\n")
        return "".join(parts)

    def dir_list(self, groups: Mapping[str, tuple[str, ...]]) -> str:
        return self._groups("matchedFilesDirStructureList", groups)

    def tree(self, tree_text: str, *, context: str) -> str:
        fragment = _as_xml_fragment(tree_text)
        if fragment is not None:
            inner = f"    {fragment}\n"
        else:
            inner = f"    <representation>{cdata(tree_text)}</representation>\n"
        return f"  <directoryTree context={_xml_attr(context)}>\n{inner}  </directoryTree>\n"

    def structure(self, groups: Mapping[str, tuple[str, ...]]) -> str:
        return self._groups("directoryStructure", groups)

    def files_begin(self, total: int) -> str:
        return f'  <fileContents count="{total}">\n'

    def no_files(self) -> str:
        return f"    <message>{_xml_text(NO_FILES_MESSAGE)}</message>\n"

    def file_header(self, matched: MatchedFile, index: int, total: int, *, show_paths: bool) -> str:
        parts = [
            f'    <file index="{index}">\n',
            f"      <filename>{_xml_text(matched.name)}</filename>\n",
        ]
        if show_paths:
            parts.append(f"      <relativePath>{_xml_text(matched.relative_path)}</relativePath>\n")
            parts.append(f"      <absolutePath>{_xml_text(matched.absolute_path)}</absolutePath>\n")
        return "".join(parts)

    def body(self, blob: bytes) -> bytes:
        return f"      <content>{cdata(_decode_text(blob))}</content>\n".encode("utf-8")

    def file_error(self, matched: MatchedFile, error: OSError) -> str:
        reason = error.strerror or str(error)
        return f"      <error>{_xml_text(f'Cannot read file: {reason}')}</error>\n"

    def file_footer(self, matched: MatchedFile, *, show_paths: bool) -> str:
        return "    </file>\n"

    def files_end(self) -> str:
        return "  </fileContents>\n"

    def end(self) -> str:
        return "</concatenation>\n"
