import uuid
from datetime import timedelta
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone

from chat import store
from chat.documents import ChatMessage, Role
from chat.models import Conversation


class ConversationStoreTests(TestCase):
    def setUp(self):
        self.user_id = uuid.uuid4()

    def _msg(self, conversation, content="hello", role=Role.USER):
        return ChatMessage.create(str(conversation.id), content, role)

    def test_create_conversation(self):
        conv = store.create_conversation(self.user_id, "Hello")
        self.assertEqual(conv.messages, [])
        self.assertEqual(conv.user_id, self.user_id)
        self.assertEqual(conv.title, "Hello")
        self.assertIsNotNone(conv.created_at)
        self.assertIsNotNone(conv.updated_at)

    def test_titles_are_not_unique(self):
        a = store.create_conversation(self.user_id, "Same")
        b = store.create_conversation(self.user_id, "Same")
        self.assertNotEqual(a.id, b.id)

    def test_get_conversation_missing_or_malformed(self):
        self.assertIsNone(store.get_conversation(uuid.uuid4()))
        self.assertIsNone(store.get_conversation("not-a-uuid"))
        self.assertIsNone(store.get_conversation(None))

    def test_append_returns_prior_plus_one(self):
        conv = store.create_conversation(self.user_id, "t")
        first = store.add_message_to_conversation(conv.id, self._msg(conv, "one"))
        second = store.add_message_to_conversation(conv.id, self._msg(conv, "two", Role.ASSISTANT))

        self.assertEqual(len(first), 1)
        self.assertEqual(second[:1], first)
        self.assertEqual(len(second), 2)
        self.assertEqual([m.content for m in second], ["one", "two"])
        self.assertNotEqual(second[0].id, second[1].id)

        conv.refresh_from_db()
        self.assertEqual([m["content"] for m in conv.messages], ["one", "two"])

    @patch("chat.store.now_ms", return_value=1700000000000)
    def test_ids_stay_unique_within_same_millisecond(self, _now):
        conv = store.create_conversation(self.user_id, "t")
        store.add_message_to_conversation(conv.id, self._msg(conv, "a"))
        messages = store.add_message_to_conversation(conv.id, self._msg(conv, "b"))
        self.assertEqual([m.id for m in messages], ["1700000000000", "1700000000001"])

    def test_append_refreshes_updated_at(self):
        conv = store.create_conversation(self.user_id, "t")
        old = timezone.now() - timedelta(days=1)
        Conversation.objects.filter(pk=conv.pk).update(updated_at=old)

        store.add_message_to_conversation(conv.id, self._msg(conv))
        conv.refresh_from_db()
        self.assertGreater(conv.updated_at, old)

    def test_append_to_missing_conversation(self):
        missing = uuid.uuid4()
        with self.assertRaises(store.ConversationNotFound) as ctx:
            store.add_message_to_conversation(missing, ChatMessage.create(str(missing), "x", Role.USER))
        self.assertEqual(ctx.exception.conversation_id, str(missing))

    def test_user_conversations_newest_first(self):
        now = timezone.now()
        older = store.create_conversation(self.user_id, "older")
        newer = store.create_conversation(self.user_id, "newer")
        middle = store.create_conversation(self.user_id, "middle")
        store.create_conversation(uuid.uuid4(), "someone else")

        Conversation.objects.filter(pk=older.pk).update(updated_at=now - timedelta(hours=3))
        Conversation.objects.filter(pk=middle.pk).update(updated_at=now - timedelta(hours=2))
        Conversation.objects.filter(pk=newer.pk).update(updated_at=now - timedelta(hours=1))

        titles = [c.title for c in store.get_user_conversations(self.user_id)]
        self.assertEqual(titles, ["newer", "middle", "older"])

    def test_delete_then_get_is_absent(self):
        conv = store.create_conversation(self.user_id, "t")
        store.add_message_to_conversation(conv.id, self._msg(conv))
        store.delete_conversation(conv.id)
        self.assertIsNone(store.get_conversation(conv.id))
        # deleting again is harmless
        store.delete_conversation(conv.id)
        store.delete_conversation("garbage")

    def test_update_title(self):
        conv = store.create_conversation(self.user_id, "t")
        old = timezone.now() - timedelta(days=1)
        Conversation.objects.filter(pk=conv.pk).update(updated_at=old)

        store.update_conversation_title(conv.id, "Renamed")
        conv.refresh_from_db()
        self.assertEqual(conv.title, "Renamed")
        self.assertGreater(conv.updated_at, old)

    def test_update_title_missing(self):
        with self.assertRaises(store.ConversationNotFound):
            store.update_conversation_title(uuid.uuid4(), "x")

    def test_mark_message_animated(self):
        conv = store.create_conversation(self.user_id, "t")
        messages = store.add_message_to_conversation(conv.id, self._msg(conv, "reply", Role.ASSISTANT))
        mid = messages[0].id

        self.assertTrue(store.mark_message_animated(conv.id, mid))
        conv.refresh_from_db()
        self.assertTrue(conv.messages[0]["animated"])
        # second time there is nothing to change
        self.assertFalse(store.mark_message_animated(conv.id, mid))

    def test_mark_message_animated_is_best_effort(self):
        self.assertFalse(store.mark_message_animated(uuid.uuid4(), "1"))

        conv = store.create_conversation(self.user_id, "t")
        self.assertFalse(store.mark_message_animated(conv.id, "no-such-message"))

        messages = store.add_message_to_conversation(conv.id, self._msg(conv, "reply", Role.ASSISTANT))
        stored = Conversation.objects.get(pk=conv.pk)
        with patch("chat.store.Conversation.objects.filter") as mock_filter:
            mock_filter.return_value.first.return_value = stored
            mock_filter.return_value.update.side_effect = DatabaseError("down")
            self.assertFalse(store.mark_message_animated(conv.id, messages[0].id))
