from app.utils import generate_group_id, na_to_none, split_genres


def test_generate_group_id_is_lowercase_hex():
    group_id = generate_group_id()
    assert len(group_id) == 8
    assert all(character in "0123456789abcdef" for character in group_id)


def test_generate_group_id_respects_length():
    assert len(generate_group_id(12)) == 12


def test_split_genres_strips_blanks():
    assert split_genres("Crime, Drama , ,Thriller") == ["Crime", "Drama", "Thriller"]
    assert split_genres(None) == []


def test_na_to_none():
    assert na_to_none("N/A") is None
    assert na_to_none("") is None
    assert na_to_none("Drama") == "Drama"
