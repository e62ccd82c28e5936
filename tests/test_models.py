"""Tests for Item and ItemType."""
from vaultmux.models import Item, ItemType


class TestItemType:
    """Tests for the closed item type variant."""

    def test_known_values(self):
        assert ItemType.from_native('SecureNote') is ItemType.SECURE_NOTE
        assert ItemType.from_native('SSHKey') is ItemType.SSH_KEY
        assert ItemType.from_native(ItemType.API_KEY) is ItemType.API_KEY

    def test_unknown_maps_to_other(self):
        """Test that backend-native types without counterpart map to Other."""
        assert ItemType.from_native('Passkey') is ItemType.OTHER
        assert ItemType.from_native(42) is ItemType.OTHER
        assert ItemType.from_native(None) is ItemType.OTHER

    def test_str(self):
        assert str(ItemType.DATABASE) == 'Database'


class TestItem:
    """Tests for Item construction helpers."""

    def test_new_secure_note(self):
        item = Item.new_secure_note('test-key', 'test-value')
        assert item.name == 'test-key'
        assert item.notes == 'test-value'
        assert item.item_type is ItemType.SECURE_NOTE
        assert item.created is not None
        assert item.modified is not None
        assert item.id

    def test_new_login(self):
        item = Item.new_login('github', 'user@example.com', 'password123')
        assert item.item_type is ItemType.LOGIN
        assert item.notes is None
        assert item.fields == {
            'username': 'user@example.com',
            'password': 'password123',
        }

    def test_unique_ids(self):
        a = Item.new_secure_note('a', 'x')
        b = Item.new_secure_note('a', 'x')
        assert a.id != b.id

    def test_without_notes(self):
        """Test that the payload is removed from the copy only."""
        item = Item.new_secure_note('k', 'secret')
        bare = item.without_notes()
        assert bare.notes is None
        assert bare.id == item.id
        assert item.notes == 'secret'

    def test_renamed(self):
        item = Item.new_secure_note('app/k', 'v')
        assert item.renamed('k').name == 'k'
        assert item.name == 'app/k'

    def test_repr_masks_notes(self):
        """Test that the secret payload never shows in repr."""
        item = Item.new_secure_note('k', 'sk_live_abc123')
        assert 'sk_live_abc123' not in repr(item)
        assert '***' in repr(item)

    def test_json_roundtrip(self):
        item = Item.new_secure_note('test', 'value')
        restored = Item.model_validate_json(item.model_dump_json())
        assert restored == item
