import json
import os

import pytest

from rtplugins.filespec import (
    SAVE_AND_EXIT,
    SPEC_COMMAND,
    SPEC_TYPE,
    Question,
    Questionnaire,
    aql_mandatory_keys,
    aql_optional_keys,
    build_bundle_optional_keys,
    build_file_spec_json,
    build_mandatory_keys,
    bundle_mandatory_keys,
    do_questionnaire,
    handle_result,
    main,
    pattern_mandatory_keys,
    pattern_optional_keys,
    upload_optional_keys,
    validate_spec_path,
)


def scripted(answers):
    remaining = iter(answers)
    prompts = []

    def ask(prompt, options):
        prompts.append((prompt, options))
        return next(remaining)

    ask.prompts = prompts
    return ask


def test_validate_spec_path_directory(tmp_path):
    with pytest.raises(ValueError, match="directory"):
        validate_spec_path(str(tmp_path) + os.sep)


def test_validate_spec_path_new_file_then_existing(tmp_path):
    target = tmp_path / "filespec-test"
    assert validate_spec_path(str(target)) is None
    target.write_text("This is test file content.")
    with pytest.raises(ValueError, match="already exists"):
        validate_spec_path(str(target))


def test_handle_result_writes_file(tmp_path):
    target = tmp_path / "filespec-test"
    handle_result(b"This is the result content.", str(target))
    assert target.read_text() == "This is the result content."


def test_handle_result_prints_indented(capsys):
    handle_result(b'{"files": [{"a":"b"}]}', "")
    assert capsys.readouterr().out == '{\n  "files": [\n    {\n      "a": "b"\n    }\n  ]\n}\n'


def test_build_file_spec_json():
    specs = [
        {"pattern": "testPattern", "limit": "3"},
        {"pattern": "testAql", "props": "a=b;c=d", "recursive": "true"},
    ]
    result = json.loads(build_file_spec_json(specs))
    assert result == {"files": specs}


def test_build_file_spec_json_exact_bytes():
    assert build_file_spec_json([{"b": "1", "a": "2"}]) == b'{"files": [{"a":"2","b":"1"}]}'


def test_key_sets():
    assert pattern_mandatory_keys("search") == ["pattern"]
    assert pattern_mandatory_keys("delete") == []
    assert aql_mandatory_keys("setProps") == ["aql"]
    assert build_mandatory_keys("upload") == []
    assert bundle_mandatory_keys("copy") == ["bundle"]
    assert upload_optional_keys() == [SAVE_AND_EXIT, "target", "props", "recursive", "exclusions", "flat"]
    assert pattern_optional_keys("download")[-1] == "flat"
    assert aql_optional_keys("move")[-1] == "validateSymlinks"
    assert "exclusions" not in aql_optional_keys("search")
    assert build_bundle_optional_keys("search") == [
        SAVE_AND_EXIT, "props", "excludeProps", "recursive", "exclusions", "archiveEntries", "sortBy", "sortOrder",
    ]


def test_question_list_answer():
    assert Question(is_list=True).convert("a, b,c") == ["a", "b", "c"]
    assert Question().convert("a, b") == "a, b"


def test_questionnaire_search_pattern():
    ask = scripted(["search", "pattern", "repo/*", "limit", "3", "exclusions", "a/*, b/*", SAVE_AND_EXIT])
    answers = Questionnaire(ask, [SPEC_COMMAND]).perform()
    assert answers == {"pattern": "repo/*", "limit": "3", "exclusions": ["a/*", "b/*"]}


def test_questionnaire_reasks_invalid_option():
    ask = scripted(["bogus", "", "download", "aql", "{}", SAVE_AND_EXIT])
    questionnaire = Questionnaire(ask, [SPEC_COMMAND])
    assert questionnaire.perform() == {"aql": "{}"}
    assert questionnaire.spec_command == "download"


def test_questionnaire_default_prompt():
    ask = scripted(["search", "pattern", "r/*", "limit", "5", SAVE_AND_EXIT])
    Questionnaire(ask, [SPEC_COMMAND]).perform()
    assert ("Insert the value for limit >", None) in ask.prompts


def test_questionnaire_unsupported_command():
    with pytest.raises(ValueError, match="unsupported specCommand"):
        Questionnaire(scripted([]), [], "bogus")


def test_questionnaire_missing_command():
    with pytest.raises(ValueError, match="specCommand is missing"):
        Questionnaire(scripted(["pattern"]), [SPEC_TYPE]).perform()


def test_do_questionnaire_two_specs():
    ask = scripted([
        "move", "pattern", "dst/", "src/*", SAVE_AND_EXIT,
        "y",
        "aql", "dst2/", "{\"repo\":\"x\"}", SAVE_AND_EXIT,
        "n",
    ])
    assert do_questionnaire(ask) == [
        {"target": "dst/", "pattern": "src/*"},
        {"target": "dst2/", "aql": "{\"repo\":\"x\"}"},
    ]


def test_main_rejects_existing_file(tmp_path):
    target = tmp_path / "spec.json"
    target.write_text("{}")
    assert main(["create", "--file", str(target)]) == 1