"""
Immutable snapshot of TypeScript source files, parsed with tree-sitter.

Only the top level of a file is modelled: import declarations and class
declarations together with the JSDoc blocks attached to them. Nothing here
mutates source; edits are expressed as patches applied by the JSDoc writer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Tuple

import tree_sitter_typescript as tsts
from tree_sitter import Language, Node, Parser

from arxiv_assistant.exception.custom_exception import SourceParseError
from arxiv_assistant.logger import GLOBAL_LOGGER as log
from arxiv_assistant.src.examples_agent.models import ClassReference

TS_LANGUAGE = Language(tsts.language_typescript())

CLASS_NODE_TYPES = ("class_declaration", "abstract_class_declaration", "class")

_TAG_RE = re.compile(r"^\s*\*?\s*@(\w+)", re.MULTILINE)
_CODE_FENCE = "```"


def _parse(source: bytes):
    return Parser(TS_LANGUAGE).parse(source)


def _text(node: Optional[Node]) -> Optional[str]:
    if node is None:
        return None
    # scanned example files may hold stray non UTF-8 bytes
    return node.text.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class ImportDeclaration:
    module: str
    named_symbols: Tuple[str, ...]


@dataclass(frozen=True)
class JsDoc:
    text: str
    start_byte: int
    end_byte: int

    @property
    def inner_text(self) -> str:
        body = self.text[3:-2] if self.text.endswith("*/") else self.text[3:]
        lines = [re.sub(r"^\s*\* ?", "", line) for line in body.splitlines()]
        return "\n".join(lines).strip()

    @property
    def tags(self) -> Tuple[str, ...]:
        return tuple(_TAG_RE.findall(self.text[3:]))

    @property
    def code_fence_count(self) -> int:
        return self.inner_text.count(_CODE_FENCE)


@dataclass(frozen=True)
class ClassDeclaration:
    name: Optional[str]
    exported: bool
    abstract: bool
    jsdocs: Tuple[JsDoc, ...]
    # where a new JSDoc goes: start of the `export` statement or of the class
    anchor_byte: int
    anchor_column: int


@dataclass(frozen=True)
class SourceFileSnapshot:
    path: str
    source: bytes
    imports: Tuple[ImportDeclaration, ...]
    classes: Tuple[ClassDeclaration, ...]

    def get_class(self, name: str) -> Optional[ClassDeclaration]:
        for klass in self.classes:
            if klass.name == name:
                return klass
        return None


# ---------- imports ----------


def _import_declarations(root: Node) -> List[ImportDeclaration]:
    declarations: List[ImportDeclaration] = []
    for node in root.children:
        if node.type != "import_statement":
            continue
        module = (_text(node.child_by_field_name("source")) or "").strip("'\"")
        symbols: List[str] = []
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for part in clause.named_children:
                # default and namespace imports are not collected
                if part.type != "named_imports":
                    continue
                for spec in part.named_children:
                    if spec.type != "import_specifier":
                        continue
                    alias = spec.child_by_field_name("alias")
                    local = alias if alias is not None else spec.child_by_field_name("name")
                    if local is not None:
                        symbols.append(_text(local))
        declarations.append(ImportDeclaration(module=module, named_symbols=tuple(symbols)))
    return declarations


def scan_imports(source: bytes) -> FrozenSet[str]:
    """
    Named symbols brought into scope by the file's top level imports.

    `import { Foo as Bar }` contributes `Bar` only, so an aliased import never
    counts as a reference to `Foo`. Syntax errors elsewhere in the file are
    tolerated.
    """
    tree = _parse(source)
    return frozenset(
        symbol for decl in _import_declarations(tree.root_node) for symbol in decl.named_symbols
    )


# ---------- classes ----------


def _leading_jsdocs(anchor: Node) -> Tuple[JsDoc, ...]:
    docs: List[JsDoc] = []
    sibling = anchor.prev_sibling
    while sibling is not None and sibling.type == "comment":
        text = _text(sibling)
        if text.startswith("/**"):
            docs.append(JsDoc(text=text, start_byte=sibling.start_byte, end_byte=sibling.end_byte))
        sibling = sibling.prev_sibling
    docs.reverse()
    return tuple(docs)


def _class_declarations(root: Node) -> List[ClassDeclaration]:
    classes: List[ClassDeclaration] = []
    for node in root.children:
        if node.type == "export_statement":
            decl = node.child_by_field_name("declaration") or node.child_by_field_name("value")
            exported = True
        else:
            decl = node
            exported = False

        if decl is None or decl.type not in CLASS_NODE_TYPES:
            continue

        classes.append(
            ClassDeclaration(
                name=_text(decl.child_by_field_name("name")),
                exported=exported,
                abstract=decl.type == "abstract_class_declaration",
                jsdocs=_leading_jsdocs(node),
                anchor_byte=node.start_byte,
                anchor_column=node.start_point[1],
            )
        )
    return classes


def snapshot_source(source: bytes, path: str = "<memory>") -> SourceFileSnapshot:
    try:
        source.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SourceParseError(f"{path} is not valid UTF-8", e) from e

    tree = _parse(source)
    if tree.root_node.has_error:
        raise SourceParseError(f"Syntax errors while parsing {path}")

    return SourceFileSnapshot(
        path=path,
        source=source,
        imports=tuple(_import_declarations(tree.root_node)),
        classes=tuple(_class_declarations(tree.root_node)),
    )


def snapshot_file(path: str) -> SourceFileSnapshot:
    return snapshot_source(Path(path).read_bytes(), path)


def needs_example(klass: ClassDeclaration) -> bool:
    """
    Exported, non-abstract, named classes need an example unless one of their
    JSDocs carries an `@example` tag or the first JSDoc already holds a fenced
    code block.
    """
    if klass.abstract or not klass.exported or not klass.name:
        return False
    if not klass.jsdocs:
        return True
    if any("example" in doc.tags for doc in klass.jsdocs):
        return False
    return klass.jsdocs[0].code_fence_count < 2


def find_classes_without_examples(source_files: Iterable[str]) -> List[ClassReference]:
    found: List[ClassReference] = []
    for path in source_files:
        try:
            snapshot = snapshot_file(path)
        except (SourceParseError, OSError) as e:
            log.error("Skipping unparsable source file | path=%s | error=%s", path, str(e))
            continue

        for klass in snapshot.classes:
            if needs_example(klass):
                found.append(ClassReference(defining_file_path=path, class_name=klass.name))

    log.info("Classes without examples | count=%d", len(found))
    return found
