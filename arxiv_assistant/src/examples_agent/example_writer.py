from __future__ import annotations

import random
import re
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from arxiv_assistant.exception.custom_exception import ArxivAssistantException, CodeFormattingError
from arxiv_assistant.logger import GLOBAL_LOGGER as log
from arxiv_assistant.prompts.prompt_library import PROMPT_REGISTRY
from arxiv_assistant.schemas.paper_models import ExampleCode
from arxiv_assistant.src.examples_agent.models import ExampleMatch, ExamplePatch, ExamplesAgentConfig
from arxiv_assistant.src.examples_agent.source_model import ClassDeclaration, SourceFileSnapshot, snapshot_file

PRETTIER_COMMAND = ["npx", "--yes", "prettier", "--parser", "typescript"]

# not string aware: `//` inside a string or regex literal also starts a comment
_LINE_COMMENT_RE = re.compile(r"(?<!:)//.*")
_BLOCK_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/")
_CODE_FENCE_RE = re.compile(r"```[\w-]*")
_MODEL_DECL_RE = re.compile(r"const (model|llm|chat) = new [^(\n]+")


def remove_comments(text: str) -> str:
    """Drops `//` line comments (not `://` in URLs) and `/* */` blocks."""
    return _BLOCK_COMMENT_RE.sub("", _LINE_COMMENT_RE.sub("", text))


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE_RE.sub("", text)


def swap_model_class(text: str, choices: Sequence[str], rng: Optional[random.Random] = None) -> str:
    """Replaces `const model = new Xyz` declarations with one randomly chosen chat model class."""
    if not choices:
        return text
    model_class = (rng or random).choice(list(choices))
    return _MODEL_DECL_RE.sub(lambda m: f"const {m.group(1)} = new {model_class}", text)


def collapse_blank_lines(text: str) -> str:
    return "\n".join(line.rstrip() for line in text.splitlines() if line.strip())


def prettify_code(code: str, timeout: int = 60) -> str:
    try:
        result = subprocess.run(
            PRETTIER_COMMAND,
            input=code,
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as e:
        raise CodeFormattingError(f"prettier rejected the code: {e.stderr.strip()}", e) from e
    except (OSError, subprocess.TimeoutExpired) as e:
        raise CodeFormattingError("prettier could not be run", e) from e
    return result.stdout


class ExampleGenerator:
    """
    Turns a matched example file into a patch description for its class.

    The example file (comments removed) is condensed by the "examples" LLM into
    a short snippet, which is then cleaned up and formatted.
    """

    def __init__(self, model_loader, agent_config: ExamplesAgentConfig, rng: Optional[random.Random] = None):
        self.model_loader = model_loader
        self.agent_config = agent_config
        self.rng = rng or random.Random()
        self._chain = None

    def _build_chain(self):
        llm = self.model_loader.load_llm("examples")
        return PROMPT_REGISTRY["write_example_code"] | llm.with_structured_output(ExampleCode)

    def _record_failed_class(self, class_name: str) -> None:
        path = self.agent_config.failed_classes_file
        with open(path, "a", encoding="utf-8") as f:
            f.write(f"{class_name}\n")

    def format_example_code(self, code: str, class_name: str) -> str:
        text = swap_model_class(strip_code_fences(code), self.agent_config.model_class_choices, self.rng)

        if self.agent_config.prettier:
            try:
                text = prettify_code(text)
            except CodeFormattingError as e:
                log.error("Error while formatting example code | class=%s | error=%s", class_name, str(e))
                self._record_failed_class(class_name)

        return collapse_blank_lines(remove_comments(text)).strip()

    def generate(self, match: ExampleMatch) -> Optional[ExamplePatch]:
        if self._chain is None:
            self._chain = self._build_chain()

        class_name = match.klass.class_name
        try:
            source = Path(match.example_file).read_text(encoding="utf-8")
            result: ExampleCode = self._chain.invoke({"klass": class_name, "code": remove_comments(source)})
        except Exception as e:
            log.error("Example generation failed | class=%s | error=%s", class_name, str(e))
            raise ArxivAssistantException(f"Failed generating example for {class_name}", e) from e

        code = self.format_example_code(result.code, class_name)
        if not code:
            log.info("No text found for example | class=%s", class_name)
            return None

        log.info("Example generated | class=%s | example_file=%s", class_name, match.example_file)
        return ExamplePatch(
            file_path=match.klass.defining_file_path,
            class_name=class_name,
            insert_text=code,
        )


def example_tag_lines(code: str) -> List[str]:
    # a literal "*/" would end the JSDoc early
    code = code.replace("*/", "*\\/")
    return ["@example", "```typescript", *code.splitlines(), "```"]


def _prefixed(lines: List[str], prefix: str) -> str:
    return "".join(f"{prefix}* {line}".rstrip() + "\n" for line in lines)


def _edit_for(snapshot: SourceFileSnapshot, klass: ClassDeclaration, code: str) -> Tuple[int, bytes]:
    lines = example_tag_lines(code)
    indent = " " * klass.anchor_column

    if not klass.jsdocs:
        text = "/**\n" + _prefixed(lines, indent + " ") + f"{indent} */\n{indent}"
        return klass.anchor_byte, text.encode("utf-8")

    doc = klass.jsdocs[0]
    close = doc.end_byte - 2
    line_start = snapshot.source.rfind(b"\n", doc.start_byte, close) + 1
    closing_prefix = snapshot.source[line_start:close]

    if line_start > 0 and not closing_prefix.strip():
        # multi line JSDoc: new lines go right above the closing "*/"
        return line_start, _prefixed(lines, closing_prefix.decode("utf-8")).encode("utf-8")

    # single line JSDoc: break the line before the closing "*/"
    pos = close
    while pos > doc.start_byte + 3 and snapshot.source[pos - 1:pos] in (b" ", b"\t"):
        pos -= 1
    text = "\n" + _prefixed(lines, indent + " ") + indent
    return pos, text.encode("utf-8")


class JsDocWriter:
    """Applies example patches to TypeScript files on disk."""

    def apply(self, patches: Sequence[ExamplePatch]) -> List[str]:
        by_file: Dict[str, List[ExamplePatch]] = {}
        for patch in patches:
            by_file.setdefault(patch.file_path, []).append(patch)

        written: List[str] = []
        for path, file_patches in by_file.items():
            snapshot = snapshot_file(path)

            edits: List[Tuple[int, bytes]] = []
            for patch in file_patches:
                klass = snapshot.get_class(patch.class_name)
                if klass is None:
                    raise ArxivAssistantException(f"Could not find class {patch.class_name} in file {path}")
                edits.append(_edit_for(snapshot, klass, patch.insert_text))

            content = bytearray(snapshot.source)
            for offset, text in sorted(edits, key=lambda e: e[0], reverse=True):
                content[offset:offset] = text

            Path(path).write_bytes(bytes(content))
            written.append(path)
            log.info("Wrote JSDoc examples | file=%s | classes=%d", path, len(file_patches))

        return written
