from django.test import SimpleTestCase

from chat.documents import ChatMessage, InvalidMessage, Role


class ChatMessageTests(SimpleTestCase):
    def test_create_defaults(self):
        msg = ChatMessage.create("c1", "hi", Role.USER, timestamp=1700000000000)
        self.assertEqual(msg.id, "")
        self.assertEqual(msg.role, Role.USER)
        self.assertFalse(msg.animated)
        self.assertEqual(msg.timestamp, 1700000000000)

    def test_create_accepts_role_string(self):
        self.assertIs(ChatMessage.create("c1", "hi", "assistant").role, Role.ASSISTANT)

    def test_create_rejects_bad_role_and_content(self):
        with self.assertRaises(InvalidMessage):
            ChatMessage.create("c1", "hi", "system")
        with self.assertRaises(InvalidMessage):
            ChatMessage.create("c1", None, Role.USER)
        with self.assertRaises(InvalidMessage):
            ChatMessage.create("", "hi", Role.USER)

    def test_dict_shape(self):
        msg = ChatMessage.create("c1", "<b>hi</b>", Role.ASSISTANT, timestamp=5).with_id("10")
        self.assertEqual(msg.to_dict(), {
            "id": "10",
            "conversationId": "c1",
            "content": "<b>hi</b>",
            "role": "assistant",
            "timestamp": 5,
            "animated": False,
        })
        self.assertEqual(ChatMessage.from_dict(msg.to_dict()), msg)

    def test_from_dict_validates_fields(self):
        good = {"id": "1", "content": "x", "role": "user", "timestamp": 1}
        for key in good:
            broken = {k: v for k, v in good.items() if k != key}
            with self.subTest(missing=key):
                with self.assertRaises(InvalidMessage):
                    ChatMessage.from_dict(broken)
        with self.assertRaises(InvalidMessage):
            ChatMessage.from_dict(dict(good, timestamp="yesterday"))
        with self.assertRaises(InvalidMessage):
            ChatMessage.from_dict(["not", "a", "dict"])

    def test_mark_animated_is_one_way(self):
        msg = ChatMessage.create("c1", "x", Role.ASSISTANT)
        revealed = msg.mark_animated()
        self.assertTrue(revealed.animated)
        self.assertFalse(msg.animated)
        self.assertIs(revealed.mark_animated(), revealed)
