from tuition_center.services.levels import MIXED_LEVELS, Level, is_grade_compatible


def test_mixed_levels_accepts_any_grade():
    level = Level.parse(MIXED_LEVELS)
    assert level.is_mixed
    assert level.accepts("Primary 3")
    assert level.accepts(None)


def test_named_level_requires_exact_grade():
    level = Level.named("Primary 5")
    assert level.accepts("Primary 5")
    assert not level.accepts("Primary 6")
    assert not level.accepts("primary 5")


def test_missing_level_is_not_a_wildcard():
    assert not is_grade_compatible(None, "Primary 5")
    assert not is_grade_compatible(None, None)


def test_round_trip_of_stored_value():
    assert Level.parse("Secondary 1") == Level.named("Secondary 1")
    assert Level.parse(MIXED_LEVELS) == Level.mixed()
