from efiscal.data.dedup import batch_duplicate_keys, filter_new
from tests.helpers import make_record


def test_filter_new_drops_known_keys() -> None:
    a = make_record(material_code="A")
    b = make_record(material_code="B")
    c = make_record(material_code="C")

    assert filter_new([a, b, c], {b.dedup_key}) == [a, c]


def test_filter_new_with_no_existing_keys_keeps_everything() -> None:
    records = [make_record(material_code=m) for m in "XYZ"]
    assert filter_new(records, set()) == records


def test_same_key_twice_in_one_batch_both_pass() -> None:
    first = make_record(order_number="P1")
    second = make_record(order_number="P2")
    assert first.dedup_key == second.dedup_key

    assert filter_new([first, second], set()) == [first, second]
    assert batch_duplicate_keys([first, second]) == [first.dedup_key]


def test_batch_duplicate_keys_empty_when_unique() -> None:
    assert batch_duplicate_keys([make_record(material_code="A"), make_record(material_code="B")]) == []
