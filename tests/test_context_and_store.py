"""Unit tests for messages, context assembly, the system prompt, placeholder links and the conversation store."""
from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from src.chat_orchestrator.config import MAX_CONTEXT_MESSAGES
from src.chat_orchestrator.context import build_context, trim_middle, with_system_prompt
from src.chat_orchestrator.links import collect_search_links, replace_placeholder_links
from src.chat_orchestrator.models import ExecutedTool, Message, ToolResult
from src.chat_orchestrator.session_store import ConversationStore, load_conversation, save_conversation
from src.chat_orchestrator.system_prompt_loader import get_default_system_prompt, load_system_prompt


def _msgs(n: int, role: str = "user") -> list[Message]:
    return [Message(role=role, content=f"m{i}") for i in range(n)]


def _search(*links: str | None) -> ExecutedTool:
    items = [{"title": f"t{i}", "link": link} for i, link in enumerate(links)]
    return ExecutedTool(name="find_content", result=ToolResult(success=True, payload={"items": items}))


class TestMessage(unittest.TestCase):
    def test_tool_message_requires_call_id(self) -> None:
        with self.assertRaises(ValidationError):
            Message(role="tool", content="{}")
        with self.assertRaises(ValidationError):
            Message.model_validate({"role": "tool", "content": "{}"})

    def test_tool_message_with_call_id_is_accepted(self) -> None:
        message = Message(role="tool", content="{}", tool_call_id="call_1")
        self.assertEqual(message.to_chat_dict()["tool_call_id"], "call_1")


class TestContext(unittest.TestCase):
    def test_system_prompt_prepended_once(self) -> None:
        history = with_system_prompt(_msgs(2), "SYS")
        self.assertEqual(history[0].role, "system")
        again = with_system_prompt(history, "OTHER")
        self.assertEqual(sum(1 for m in again if m.role == "system"), 1)
        self.assertEqual(again[0].content, "SYS")

    def test_no_prompt_leaves_history(self) -> None:
        self.assertEqual(len(with_system_prompt(_msgs(2), "")), 2)

    def test_trim_keeps_system_and_tail(self) -> None:
        messages = [Message(role="system", content="SYS"), *_msgs(20)]
        trimmed = trim_middle(messages, 5)
        self.assertEqual(len(trimmed), 5)
        self.assertEqual(trimmed[0].content, "SYS")
        self.assertEqual([m.content for m in trimmed[1:]], ["m16", "m17", "m18", "m19"])

    def test_trim_without_system_keeps_tail(self) -> None:
        trimmed = trim_middle(_msgs(10), 3)
        self.assertEqual([m.content for m in trimmed], ["m7", "m8", "m9"])

    def test_short_history_untouched(self) -> None:
        self.assertEqual(len(trim_middle(_msgs(3), 16)), 3)

    def test_bound_of_one_keeps_only_latest_message(self) -> None:
        context = build_context([], [Message(role="user", content="a")], "SYS", 1)
        self.assertEqual([m.content for m in context], ["a"])

    def test_configured_bound_leaves_room_for_prompt(self) -> None:
        self.assertGreaterEqual(MAX_CONTEXT_MESSAGES, 2)

    def test_build_context_never_exceeds_bound(self) -> None:
        for stored in range(0, 40, 7):
            for new in range(1, 4):
                context = build_context(_msgs(stored, "assistant"), _msgs(new), "SYS", 16)
                self.assertLessEqual(len(context), 16)
                self.assertEqual(context[0].role, "system")
                self.assertEqual(context[-1].content, f"m{new - 1}")


class TestSystemPrompt(unittest.TestCase):
    def test_prompt_file_is_read_and_stripped(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "prompt.md"
            path.write_text("\n  Be helpful.  \n", encoding="utf-8")
            self.assertEqual(load_system_prompt(path), "Be helpful.")

    def test_missing_prompt_file_is_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertLogs("src.chat_orchestrator.system_prompt_loader", level="WARNING"):
                self.assertEqual(load_system_prompt(Path(tmp) / "absent.md"), "")

    def test_default_prompt_describes_confirmation(self) -> None:
        self.assertIn("confirm", get_default_system_prompt())


class TestPlaceholderLinks(unittest.TestCase):
    def test_single_placeholder_replaced(self) -> None:
        text = replace_placeholder_links("See [Trees](#).", [_search("https://w/1")])
        self.assertEqual(text, "See [Trees](https://w/1).")

    def test_extra_placeholders_left_unchanged(self) -> None:
        text = replace_placeholder_links("[A](#) [B](#) [C](#)", [_search("https://w/1", None, "")])
        self.assertEqual(text, "[A](https://w/1) [B](#) [C](#)")

    def test_positional_across_multiple_searches(self) -> None:
        executed = [_search("https://w/1"), _search("https://w/2")]
        text = replace_placeholder_links("[X](#) and [Y](#)", executed)
        self.assertEqual(text, "[X](https://w/1) and [Y](https://w/2)")

    def test_only_search_results_contribute_links(self) -> None:
        created = ExecutedTool(
            name="create_content",
            result=ToolResult(success=True, payload={"items": [{"link": "https://w/created"}]}),
        )
        self.assertEqual(collect_search_links([created]), [])
        self.assertEqual(replace_placeholder_links("[A](#)", [created]), "[A](#)")

    def test_real_links_untouched(self) -> None:
        text = replace_placeholder_links("[A](https://x.org) [B](#)", [_search("https://w/1")])
        self.assertEqual(text, "[A](https://x.org) [B](https://w/1)")


class TestConversationStore(unittest.TestCase):
    def test_get_unknown_is_empty(self) -> None:
        self.assertEqual(ConversationStore().get("nope"), [])

    def test_append_trims_to_most_recent(self) -> None:
        store = ConversationStore()
        store.append("c", _msgs(3))
        stored = store.append("c", _msgs(3, "assistant"), max_stored=4)
        self.assertEqual(len(stored), 4)
        self.assertEqual([m.role for m in stored], ["user", "assistant", "assistant", "assistant"])
        self.assertEqual(store.get("c"), stored)

    def test_returned_lists_are_copies(self) -> None:
        store = ConversationStore()
        store.append("c", _msgs(1))
        store.get("c").append(Message(role="user", content="sneaky"))
        self.assertEqual(len(store.get("c")), 1)

    def test_least_recently_used_conversation_is_evicted(self) -> None:
        store = ConversationStore(max_conversations=2)
        store.set("a", _msgs(1))
        store.set("b", _msgs(1))
        store.get("a")
        store.set("c", _msgs(1))
        self.assertIn("a", store)
        self.assertNotIn("b", store)
        self.assertEqual(len(store), 2)


class TestDiskPersistence(unittest.TestCase):
    def test_save_and_load_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            directory = Path(tmp)
            messages = [Message(role="user", content="hi"), Message(role="assistant", content="hello")]
            save_conversation("conv-1", messages, directory=directory)

            raw = json.loads((directory / "conv-1.json").read_text(encoding="utf-8"))
            self.assertEqual(raw["conversation_id"], "conv-1")
            self.assertIn("updated_at", raw)
            self.assertEqual(load_conversation("conv-1", directory=directory), messages)

    def test_missing_file_loads_none(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            self.assertIsNone(load_conversation("nope", directory=Path(tmp)))

    def test_corrupt_file_loads_none(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            directory = Path(tmp)
            (directory / "bad.json").write_text("{not json", encoding="utf-8")
            with self.assertLogs("src.chat_orchestrator.session_store", level="WARNING"):
                self.assertIsNone(load_conversation("bad", directory=directory))

    def test_ids_cannot_escape_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            directory = Path(tmp) / "conversations"
            save_conversation("../escape", [Message(role="user", content="x")], directory=directory)
            self.assertTrue((directory / "escape.json").exists())
            self.assertFalse((Path(tmp) / "escape.json").exists())


if __name__ == "__main__":
    unittest.main()
