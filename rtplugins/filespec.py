"""Interactively generate a file-spec JSON document."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

VERSION = "v1.0.5"

# File-spec commands.
SPEC_COMMAND = "specCommand"
SEARCH = "search"
DOWNLOAD = "download"
UPLOAD = "upload"
MOVE = "move"
COPY = "copy"
DELETE = "delete"
SET_PROPS = "setProps"

# General keys.
PATTERN = "pattern"
AQL = "aql"
SPEC_TYPE = "specType"
TARGET = "target"
PROPS = "props"
EXCLUDE_PROPS = "excludeProps"
RECURSIVE = "recursive"
EXCLUSIONS = "exclusions"
ARCHIVE_ENTRIES = "archiveEntries"
BUILD = "build"
BUNDLE = "bundle"
SORT_BY = "sortBy"
SORT_ORDER = "sortOrder"
ASC = "asc"
DESC = "desc"
LIMIT = "limit"
OFFSET = "offset"
FLAT = "flat"
VALIDATE_SYMLINKS = "validateSymlinks"
REGEXP = "regexp"

SAVE_AND_EXIT = ":x"
PRESS_TAB_MSG = " (press Tab for options):"
INSERT_VALUE_PROMPT_MSG = "Insert the value for "
OPTIONAL_KEY_PROMPT = "Select the next property >"
ANOTHER_SPEC_PROMPT = "Do you want to add another file-spec?"

SEARCH_PATTERN_OPTIONAL_KEYS = (
    PROPS, EXCLUDE_PROPS, RECURSIVE, EXCLUSIONS, ARCHIVE_ENTRIES, SORT_BY, SORT_ORDER, LIMIT, OFFSET,
)
SEARCH_AQL_OPTIONAL_KEYS = (
    PROPS, EXCLUDE_PROPS, RECURSIVE, ARCHIVE_ENTRIES, SORT_BY, SORT_ORDER, LIMIT, OFFSET,
)
SEARCH_BUILD_BUNDLE_OPTIONAL_KEYS = (
    PROPS, EXCLUDE_PROPS, RECURSIVE, EXCLUSIONS, ARCHIVE_ENTRIES, SORT_BY, SORT_ORDER,
)
DOWNLOAD_PATTERN_OPTIONAL_KEYS = (
    TARGET, PROPS, EXCLUDE_PROPS, RECURSIVE, EXCLUSIONS, ARCHIVE_ENTRIES, SORT_BY, SORT_ORDER,
    LIMIT, OFFSET, FLAT,
)
DOWNLOAD_BUILD_BUNDLE_OPTIONAL_KEYS = (
    TARGET, PROPS, EXCLUDE_PROPS, RECURSIVE, EXCLUSIONS, ARCHIVE_ENTRIES, SORT_BY, SORT_ORDER, FLAT,
)
DOWNLOAD_AQL_OPTIONAL_KEYS = (
    TARGET, PROPS, EXCLUDE_PROPS, RECURSIVE, ARCHIVE_ENTRIES, SORT_BY, SORT_ORDER, LIMIT, OFFSET, FLAT,
)
UPLOAD_OPTIONAL_KEYS = (TARGET, PROPS, RECURSIVE, EXCLUSIONS, FLAT)
MOVE_COPY_PATTERN_OPTIONAL_KEYS = (
    PROPS, EXCLUDE_PROPS, RECURSIVE, EXCLUSIONS, ARCHIVE_ENTRIES, SORT_BY, SORT_ORDER, LIMIT, OFFSET,
    FLAT, VALIDATE_SYMLINKS,
)
MOVE_COPY_AQL_OPTIONAL_KEYS = (
    PROPS, EXCLUDE_PROPS, RECURSIVE, ARCHIVE_ENTRIES, SORT_BY, SORT_ORDER, LIMIT, OFFSET, FLAT,
    VALIDATE_SYMLINKS,
)
MOVE_COPY_BUILD_BUNDLE_OPTIONAL_KEYS = (
    PROPS, EXCLUDE_PROPS, RECURSIVE, EXCLUSIONS, ARCHIVE_ENTRIES, SORT_BY, SORT_ORDER, FLAT,
    VALIDATE_SYMLINKS,
)

log = logging.getLogger(__name__)

Ask = Callable[[str, Optional[Sequence[tuple]]], str]


@dataclass(frozen=True)
class Question:
    """One question of the questionnaire and how its answer is stored."""

    prompt: str = ""
    options: tuple = ()
    is_list: bool = False

    def convert(self, answer: str):
        if self.is_list:
            return [part.strip() for part in answer.split(",")]
        return answer


_BOOL_OPTIONS = (("true", ""), ("false", ""))
_PROPS_PROMPT = 'Enter "key=value" pairs separated by a semi-colon (key1=value1;key2=value2) >'

QUESTIONS: dict[str, Question] = {
    SPEC_COMMAND: Question(
        "Select file-spec purpose" + PRESS_TAB_MSG,
        (
            (SEARCH, "Search file-spec"),
            (DOWNLOAD, "Download file-spec"),
            (UPLOAD, "Upload file-spec"),
            (MOVE, "Move file-spec"),
            (COPY, "Copy file-spec"),
            (DELETE, "Delete file-spec"),
            (SET_PROPS, "Set-props file-spec"),
        ),
    ),
    SPEC_TYPE: Question(
        "Select the file-spec type" + PRESS_TAB_MSG,
        (
            (PATTERN, "File-spec with pattern"),
            (AQL, "File-spec with AQL"),
            (BUILD, "Build based file-spec"),
            (BUNDLE, "Bundle based file-spec"),
        ),
    ),
    PATTERN: Question("Insert the pattern >"),
    AQL: Question("Insert the aql >"),
    TARGET: Question("Insert the target >"),
    PROPS: Question(_PROPS_PROMPT),
    EXCLUDE_PROPS: Question(_PROPS_PROMPT),
    RECURSIVE: Question("Select if recursive" + PRESS_TAB_MSG, _BOOL_OPTIONS),
    EXCLUSIONS: Question("Enter a comma separated list of exclusion patterns >", is_list=True),
    ARCHIVE_ENTRIES: Question("Insert archive-entries pattern >"),
    BUILD: Question("Insert build pattern >"),
    BUNDLE: Question("Insert bundle >"),
    SORT_BY: Question("Enter a comma separated list of sort-by values >", is_list=True),
    SORT_ORDER: Question("", ((ASC, ""), (DESC, ""))),
    LIMIT: Question(""),
    OFFSET: Question(""),
    FLAT: Question("", _BOOL_OPTIONS),
    VALIDATE_SYMLINKS: Question("Select if should validate symlinks" + PRESS_TAB_MSG, _BOOL_OPTIONS),
    REGEXP: Question("", _BOOL_OPTIONS),
}


def _optional(extra: Sequence[str]) -> list[str]:
    return [SAVE_AND_EXIT, *extra]


def pattern_mandatory_keys(command: str) -> list[str]:
    return [PATTERN] if command in (SEARCH, DOWNLOAD, MOVE, COPY) else []


def pattern_optional_keys(command: str) -> list[str]:
    if command in (SEARCH, DELETE, SET_PROPS):
        return _optional(SEARCH_PATTERN_OPTIONAL_KEYS)
    if command == DOWNLOAD:
        return _optional(DOWNLOAD_PATTERN_OPTIONAL_KEYS)
    if command in (MOVE, COPY):
        return _optional(MOVE_COPY_PATTERN_OPTIONAL_KEYS)
    return _optional(())


_NON_UPLOAD_COMMANDS = (SEARCH, DOWNLOAD, MOVE, COPY, DELETE, SET_PROPS)


def aql_mandatory_keys(command: str) -> list[str]:
    return [AQL] if command in _NON_UPLOAD_COMMANDS else []


def aql_optional_keys(command: str) -> list[str]:
    if command in (SEARCH, DELETE, SET_PROPS):
        return _optional(SEARCH_AQL_OPTIONAL_KEYS)
    if command == DOWNLOAD:
        return _optional(DOWNLOAD_AQL_OPTIONAL_KEYS)
    if command in (MOVE, COPY):
        return _optional(MOVE_COPY_AQL_OPTIONAL_KEYS)
    return _optional(())


def build_mandatory_keys(command: str) -> list[str]:
    return [BUILD] if command in _NON_UPLOAD_COMMANDS else []


def bundle_mandatory_keys(command: str) -> list[str]:
    return [BUNDLE] if command in _NON_UPLOAD_COMMANDS else []


def build_bundle_optional_keys(command: str) -> list[str]:
    if command in (SEARCH, DELETE, SET_PROPS):
        return _optional(SEARCH_BUILD_BUNDLE_OPTIONAL_KEYS)
    if command == DOWNLOAD:
        return _optional(DOWNLOAD_BUILD_BUNDLE_OPTIONAL_KEYS)
    if command in (MOVE, COPY):
        return _optional(MOVE_COPY_BUILD_BUNDLE_OPTIONAL_KEYS)
    return _optional(())


def upload_optional_keys() -> list[str]:
    return _optional(UPLOAD_OPTIONAL_KEYS)


_SPEC_TYPE_KEYS = {
    PATTERN: (pattern_mandatory_keys, pattern_optional_keys),
    AQL: (aql_mandatory_keys, aql_optional_keys),
    BUILD: (build_mandatory_keys, build_bundle_optional_keys),
    BUNDLE: (bundle_mandatory_keys, build_bundle_optional_keys),
}


class Questionnaire:
    """Asks the questions of one file-spec and collects the answers.

    ask(prompt, options) returns the user's answer; options is a sequence of
    (text, description) pairs, or None when any answer is accepted.
    """

    def __init__(self, ask: Ask, mandatory_keys=(SPEC_COMMAND,), spec_command: str | None = None):
        self._ask = ask
        self.mandatory_keys: list[str] = list(mandatory_keys)
        self.optional_keys: list[str] = []
        self.answers: dict = {}
        self.spec_command = spec_command
        self._pending = deque(self.mandatory_keys)
        if spec_command is not None:
            self._on_spec_command(spec_command)

    def _require(self, keys) -> None:
        self.mandatory_keys.extend(keys)
        self._pending.extend(keys)

    def _on_spec_command(self, command: str) -> None:
        if command in (SEARCH, DOWNLOAD, DELETE, SET_PROPS):
            self._require([SPEC_TYPE])
        elif command == UPLOAD:
            self._require([PATTERN])
            self.optional_keys.extend(upload_optional_keys())
        elif command in (MOVE, COPY):
            self._require([SPEC_TYPE, TARGET])
        else:
            raise ValueError(f"unsupported {SPEC_COMMAND} was configured")
        if self.spec_command is None:
            self.spec_command = command

    def _on_spec_type(self, spec_type: str) -> None:
        if SPEC_COMMAND not in self.answers:
            if not self.spec_command:
                raise ValueError(f"{SPEC_COMMAND} is missing in configuration map")
            self.answers[SPEC_COMMAND] = self.spec_command
        command = self.answers[SPEC_COMMAND]
        try:
            mandatory, optional = _SPEC_TYPE_KEYS[spec_type]
        except KeyError:
            raise ValueError(f"unsupported {SPEC_TYPE} was configured") from None
        self._require(mandatory(command))
        self.optional_keys.extend(optional(command))
        self.answers.pop(SPEC_TYPE, None)
        self.answers.pop(SPEC_COMMAND, None)

    def _read(self, prompt: str, options) -> str:
        texts = {text for text, _ in options} if options else None
        while True:
            answer = self._ask(prompt, options or None).strip()
            if answer and (texts is None or answer in texts):
                return answer

    def _ask_key(self, key: str, default_prompt: bool = False) -> None:
        question = QUESTIONS[key]
        prompt = question.prompt
        if not prompt or (default_prompt and not prompt):
            prompt = INSERT_VALUE_PROMPT_MSG + key
            if question.options:
                prompt += PRESS_TAB_MSG
            prompt += " >"
        answer = self._read(prompt, question.options)
        self.answers[key] = question.convert(answer)
        if key == SPEC_COMMAND:
            self._on_spec_command(answer)
        elif key == SPEC_TYPE:
            self._on_spec_type(answer)

    def perform(self) -> dict:
        """Ask all mandatory questions, then optional ones until save-and-exit; return the answers."""
        while self._pending:
            self._ask_key(self._pending.popleft())
        if self.optional_keys:
            options = [(key, "") for key in self.optional_keys]
            while (key := self._read(OPTIONAL_KEY_PROMPT, options)) != SAVE_AND_EXIT:
                self._ask_key(key, default_prompt=True)
        return self.answers


def _ask_another_spec(ask: Ask) -> bool:
    while True:
        answer = ask(ANOTHER_SPEC_PROMPT + " (y/n) [n]? ", None).strip().lower()
        if answer in ("", "n", "no"):
            return False
        if answer in ("y", "yes"):
            return True


def do_questionnaire(ask: Ask) -> list[dict]:
    """Ask for one or more file-specs, all for the command chosen in the first."""
    questionnaire = Questionnaire(ask, [SPEC_COMMAND])
    questionnaire.perform()
    specs = []
    while _ask_another_spec(ask):
        specs.append(questionnaire.answers)
        questionnaire = Questionnaire(ask, [], questionnaire.spec_command)
        questionnaire.perform()
    specs.append(questionnaire.answers)
    return specs


def build_file_spec_json(specs) -> bytes:
    """Return the file-spec document holding the given specs."""
    files = json.dumps(None if specs is None else list(specs), sort_keys=True, separators=(",", ":"))
    return ('{"files": %s}' % files).encode("utf-8")


def _indent_json(output) -> str:
    text = output.decode("utf-8") if isinstance(output, (bytes, bytearray)) else str(output)
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except ValueError:
        return text


def validate_spec_path(path: str) -> None:
    """Raise ValueError unless path names a file that can be created."""
    if os.path.isdir(path) or path.endswith(os.sep):
        raise ValueError(
            "path cannot be a directory, please enter a path in which the new file-spec file will be created"
        )
    if os.path.exists(path):
        raise ValueError("file already exists, please enter a path in which the new file-spec will be created")


def handle_result(output, file: str = "") -> None:
    """Print the indented output, or write it to file when one is given."""
    text = _indent_json(output)
    if not file:
        print(text)
        return
    with open(file, "w", encoding="utf-8") as handle:
        handle.write(text)
    log.info("file-spec successfully created at %s", file)


def _console_ask(prompt: str, options) -> str:
    if options:
        for text, description in options:
            print(f"  {text}" + (f" - {description}" if description else ""))
    return input(prompt + " ")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="file-spec-gen", description="Generate a file-spec json.")
    parser.add_argument("--version", action="version", version=VERSION)
    commands = parser.add_subparsers(dest="command", required=True)
    create = commands.add_parser("create", aliases=["cr"], help="Generates a file-spec json.")
    create.add_argument("--file", default="", help="Output generated file-spec to file.")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    try:
        if args.file:
            validate_spec_path(args.file)
        output = build_file_spec_json(do_questionnaire(_console_ask))
        handle_result(output, args.file)
    except (ValueError, OSError) as exc:
        print(f"[Error] {exc}", file=sys.stderr)
        return 1
    except (EOFError, KeyboardInterrupt):
        print(file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())