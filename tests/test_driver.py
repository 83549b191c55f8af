"""Tests for the generation driver."""

from __future__ import annotations

import pytest

from modelgen.driver import GeneratorDriver
from modelgen.errors import DUPLICATE_FIELD, DUPLICATE_MODEL, MALFORMED_ROW, UNRESOLVED_TYPE, NoModelsProducedError
from modelgen.models import DocumentRef
from tests._fixtures.docs_builder import CHANNEL_DOC, USER_DOC, DocsBuilder


def test_run_writes_one_module_per_model(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"resources/Channel.md": CHANNEL_DOC, "resources/User.md": USER_DOC})
    config = docs_builder.config(["resources/Channel.md", "resources/User.md"])

    report = GeneratorDriver(config).run()

    assert report.models == ["Channel", "Message", "User"]
    assert report.succeeded == [DocumentRef("resources/Channel.md"), DocumentRef("resources/User.md")]
    assert report.failed == []
    out = docs_builder.output_dir
    assert sorted(path.name for path in out.iterdir()) == [
        "__init__.py",
        "channel.py",
        "message.py",
        "user.py",
    ]
    assert set(report.written) == set(out.iterdir())
    assert "class Message(DiscordModel):" in (out / "message.py").read_text(encoding="utf-8")


def test_forward_references_resolve_after_the_full_pass(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"resources/Channel.md": CHANNEL_DOC, "resources/User.md": USER_DOC})
    config = docs_builder.config(["resources/Channel.md", "resources/User.md"])

    report = GeneratorDriver(config).run()

    assert report.issues_of(UNRESOLVED_TYPE) == []
    message = (docs_builder.output_dir / "message.py").read_text(encoding="utf-8")
    assert "    author: User\n" in message


def test_missing_reference_is_reported_and_emitted_as_opaque(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"resources/Channel.md": CHANNEL_DOC})
    config = docs_builder.config(["resources/Channel.md"])

    report = GeneratorDriver(config).run()

    unresolved = report.issues_of(UNRESOLVED_TYPE)
    assert {issue.model for issue in unresolved} == {"Channel", "Message"}
    assert any("'User'" in issue.message for issue in unresolved)
    message = (docs_builder.output_dir / "message.py").read_text(encoding="utf-8")
    assert "    author: OpaquePayload\n" in message


def test_unavailable_documents_are_skipped(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"resources/User.md": USER_DOC})
    config = docs_builder.config(["resources/Missing.md", "resources/User.md"])

    report = GeneratorDriver(config).run()

    assert report.models == ["User"]
    assert [ref for ref, _ in report.failed] == [DocumentRef("resources/Missing.md")]
    assert report.succeeded == [DocumentRef("resources/User.md")]
    assert report.ok


def test_malformed_rows_are_reported_but_valid_rows_emitted(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "resources/Emoji.md": """
            ### Emoji Object

            | Field | Type      | Description |
            | ----- | --------- | ----------- |
            | id    | ?snowflake | emoji id   |
            | name  | ?string   |
            | animated? | boolean | whether this emoji is animated |
            """
        }
    )
    config = docs_builder.config(["resources/Emoji.md"])

    report = GeneratorDriver(config).run()

    assert [issue.kind for issue in report.issues] == [MALFORMED_ROW]
    emoji = (docs_builder.output_dir / "emoji.py").read_text(encoding="utf-8")
    assert "    id: Optional[Snowflake]\n" in emoji
    assert "    animated: Optional[bool] = None\n" in emoji
    assert "    name:" not in emoji


def test_duplicate_fields_skip_only_that_model(docs_builder: DocsBuilder) -> None:
    docs_builder.write(
        {
            "resources/Invite.md": """
            ### Invite Object

            | Field | Type   | Description |
            | ----- | ------ | ----------- |
            | code  | string | the code    |
            | code? | string | again       |

            ### Invite Metadata Object

            | Field | Type    | Description |
            | ----- | ------- | ----------- |
            | uses  | integer | times used  |
            """
        }
    )
    config = docs_builder.config(["resources/Invite.md"])

    report = GeneratorDriver(config).run()

    assert report.models == ["InviteMetadata"]
    assert [name for name, _ in report.skipped_models] == ["Invite"]
    assert [issue.kind for issue in report.issues] == [DUPLICATE_FIELD]


def test_repeated_model_names_keep_the_first_definition(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"resources/User.md": USER_DOC, "topics/Certified_Devices.md": USER_DOC})
    config = docs_builder.config(["resources/User.md", "topics/Certified_Devices.md"])

    report = GeneratorDriver(config).run()

    assert report.models == ["User"]
    assert report.skipped_models == [("User", "already defined in resources/User.md")]
    assert [issue.kind for issue in report.issues] == [DUPLICATE_MODEL]


def test_zero_documents_raise_no_models_produced(docs_builder: DocsBuilder) -> None:
    config = docs_builder.config([])

    with pytest.raises(NoModelsProducedError) as excinfo:
        GeneratorDriver(config).run()
    assert excinfo.value.report.models == []
    assert not docs_builder.output_dir.exists()


def test_documents_without_tables_raise_when_nothing_is_produced(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"topics/Opcodes.md": "# Opcodes\n\nNo field tables here.\n"})
    config = docs_builder.config(["topics/Opcodes.md", "topics/Missing.md"])

    with pytest.raises(NoModelsProducedError) as excinfo:
        GeneratorDriver(config).run()
    report = excinfo.value.report
    assert report.succeeded == [DocumentRef("topics/Opcodes.md")]
    assert [ref for ref, _ in report.failed] == [DocumentRef("topics/Missing.md")]


def test_dry_run_writes_nothing(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"resources/User.md": USER_DOC})
    config = docs_builder.config(["resources/User.md"])

    report = GeneratorDriver(config).run(dry_run=True)

    assert report.models == ["User"]
    assert report.written == []
    assert not docs_builder.output_dir.exists()


def test_should_stop_is_checked_between_documents(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"resources/User.md": USER_DOC, "resources/Channel.md": CHANNEL_DOC})
    config = docs_builder.config(["resources/User.md", "resources/Channel.md"])
    calls = []

    def should_stop() -> bool:
        calls.append(True)
        return len(calls) > 1

    report = GeneratorDriver(config).run(should_stop=should_stop)

    assert report.cancelled is True
    assert report.models == ["User"]
    assert report.succeeded == [DocumentRef("resources/User.md")]


def test_cache_dir_receives_raw_documents(docs_builder: DocsBuilder, tmp_path) -> None:
    docs_builder.write({"resources/User.md": USER_DOC})
    config = docs_builder.config(["resources/User.md"], cache_dir=tmp_path / "raw")

    GeneratorDriver(config).run()

    assert (tmp_path / "raw" / "resources" / "User.md").exists()


def test_broken_cache_dir_keeps_the_run_going(docs_builder: DocsBuilder, tmp_path) -> None:
    docs_builder.write({"resources/Channel.md": CHANNEL_DOC, "resources/User.md": USER_DOC})
    cache = tmp_path / "cachefile"
    cache.write_text("", encoding="utf-8")
    config = docs_builder.config(["resources/Channel.md", "resources/User.md"], cache_dir=cache)

    report = GeneratorDriver(config).run()

    assert report.failed == []
    assert report.models == ["Channel", "Message", "User"]


def test_generated_classes_link_to_their_documentation(docs_builder: DocsBuilder) -> None:
    docs_builder.write({"resources/Channel.md": CHANNEL_DOC, "resources/User.md": USER_DOC})
    config = docs_builder.config(["resources/Channel.md", "resources/User.md"])

    GeneratorDriver(config).run()

    channel = (docs_builder.output_dir / "channel.py").read_text(encoding="utf-8")
    assert "See https://discord.com/developers/docs/resources/channel#channel-object" in channel
