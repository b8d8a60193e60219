from types import SimpleNamespace

from app.domains.compatibility import compute_score, shared_interests


def profile(interests=(), looking_for=(), values=()):
    return SimpleNamespace(interests=list(interests), looking_for=list(looking_for), values=list(values))


def test_identical_profiles_score_100():
    p = profile(["musica", "viajes"], ["relacion"], ["honestidad"])
    assert compute_score(p, p) == 100


def test_disjoint_profiles_score_0():
    a = profile(["musica"], ["relacion"], ["honestidad"])
    b = profile(["cine"], ["amistad"], ["aventura"])
    assert compute_score(a, b) == 0


def test_score_is_symmetric():
    a = profile(["musica", "viajes", "cine"], ["relacion"], ["honestidad", "humor"])
    b = profile(["viajes", "libros"], ["relacion", "amistad"], ["humor"])
    assert compute_score(a, b) == compute_score(b, a)
    assert 0 < compute_score(a, b) < 100


def test_shared_main_interest_counts_double():
    a = profile(["musica", "cine"])
    main_shared = profile(["musica", "libros"])
    minor_shared = profile(["libros", "cine"])
    assert compute_score(a, main_shared) > compute_score(a, minor_shared)


def test_empty_dimensions_are_skipped():
    a = profile(["musica"])
    b = profile(["musica"], ["relacion"], ["honestidad"])
    assert compute_score(a, b) == 100
    assert compute_score(profile(), profile()) == 0


def test_interests_are_normalised():
    a = profile([" Musica ", "VIAJES"])
    b = profile(["musica", "viajes"])
    assert compute_score(a, b) == 100


def test_shared_interests_flag_main():
    a = profile(["musica", "viajes", "cine"])
    b = profile(["viajes", "cine"])
    shared = shared_interests(a, b)
    assert [s["interest"] for s in shared] == ["viajes", "cine"]
    assert shared[0] == {"interest": "viajes", "weight": 2, "isMain": True}
    assert shared[1]["isMain"] is False
