from morsetrainer.mastery import MasteryStore
from morsetrainer.pool import LetterPoolManager


def test_seed_includes_leading_and_learned_symbols_in_course_order(make_course) -> None:
    course = make_course("etanis", ["eat"])
    mastery = MasteryStore(course.order, 2, {"s": 2, "n": 1})
    pool = LetterPoolManager(3).seed(course, mastery)
    assert pool == ("e", "t", "a", "s")


def test_seed_keeps_leading_symbols_when_later_ones_are_learned(make_course) -> None:
    course = make_course("etanis", ["eat"])
    mastery = MasteryStore(course.order, 2, {"n": 2, "i": 3, "s": 4, "e": -2})
    pool = LetterPoolManager(3).seed(course, mastery)
    assert pool == ("e", "t", "a", "n", "i", "s")
    assert pool[-1] == "s"


def test_seed_respects_initial_size(make_course) -> None:
    course = make_course("etanis", ["eat"])
    mastery = MasteryStore(course.order, 2)
    assert LetterPoolManager(3, initial_size=1).seed(course, mastery) == ("e",)


def test_no_growth_until_newest_learned_and_streak_reached(make_course) -> None:
    course = make_course("etan", ["eat"])
    manager = LetterPoolManager(3)
    mastery = MasteryStore(course.order, 2, {"a": 1})

    growth = manager.maybe_grow(("e", "t", "a"), course, mastery, streak=5)
    assert growth.added is None
    assert growth.streak == 5

    mastery.adjust("a", 1)
    growth = manager.maybe_grow(("e", "t", "a"), course, mastery, streak=2)
    assert growth.added is None


def test_growth_appends_next_course_symbol_and_resets_streak(make_course) -> None:
    course = make_course("etan", ["eat"])
    mastery = MasteryStore(course.order, 2, {"a": 2})
    growth = LetterPoolManager(3).maybe_grow(("e", "t", "a"), course, mastery, streak=3)
    assert growth.pool == ("e", "t", "a", "n")
    assert growth.added == "n"
    assert growth.streak == 0


def test_growth_is_noop_when_pool_has_whole_course(make_course) -> None:
    course = make_course("eta", ["eat"])
    mastery = MasteryStore(course.order, 2, {"e": 4, "t": 4, "a": 4})
    growth = LetterPoolManager(3).maybe_grow(("e", "t", "a"), course, mastery, streak=9)
    assert growth.pool == ("e", "t", "a")
    assert growth.added is None


def test_growth_skips_symbols_already_in_pool(make_course) -> None:
    course = make_course("etanis", ["eat"])
    mastery = MasteryStore(course.order, 2, {"s": 2})
    manager = LetterPoolManager(3)
    pool = manager.seed(course, mastery)
    growth = manager.maybe_grow(pool, course, mastery, streak=3)
    assert growth.added == "n"
    assert growth.pool == ("e", "t", "a", "s", "n")
