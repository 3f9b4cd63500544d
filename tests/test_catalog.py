from app.services import catalog


def test_known_services_have_label_and_duration() -> None:
    assert catalog.label_of(3) == "Fade"
    assert catalog.duration_of(3) == 20
    assert catalog.duration_of(0) == 10
    assert catalog.duration_of(6) == 30


def test_numeric_strings_are_accepted() -> None:
    assert catalog.duration_of("2") == 15
    assert catalog.label_of("5") == "Šišanje + Brijanje"


def test_unknown_ids_fall_back_to_defaults() -> None:
    for value in (None, 42, "abc", -1, True):
        assert catalog.duration_of(value) == 30
        assert catalog.label_of(value) == "Unknown service"
        assert not catalog.is_known(value)


def test_services_are_listed_in_id_order() -> None:
    ids = [s.id for s in catalog.services()]
    assert ids == [0, 1, 2, 3, 4, 5, 6]
