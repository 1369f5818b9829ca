from itertools import combinations
from random import Random

from engine.capture import count_sum_subsets, enumerate_captures, is_legal_capture
from engine.cards import parse_card_id
from engine.deck import build_deck


def cards(*ids):
    return [parse_card_id(card_id) for card_id in ids]


def test_rank_and_sum_captures_for_number_card():
    seven = parse_card_id("7♥")
    assert is_legal_capture(seven, cards("7♠"))
    assert is_legal_capture(seven, cards("3♦", "4♣"))
    assert is_legal_capture(seven, cards("A♠", "2♦", "4♣"))
    assert not is_legal_capture(seven, cards("3♦", "5♣"))
    assert not is_legal_capture(seven, [])


def test_face_cards_only_capture_by_rank():
    king = parse_card_id("K♣")
    assert is_legal_capture(king, cards("K♦"))
    assert is_legal_capture(king, cards("K♦", "K♥"))
    assert not is_legal_capture(king, cards("10♣", "3♦"))
    assert not is_legal_capture(king, cards("K♦", "Q♥"))


def test_face_cards_never_count_toward_sums():
    ten = parse_card_id("10♠")
    assert not is_legal_capture(ten, cards("J♦"))
    assert not is_legal_capture(parse_card_id("J♠"), cards("10♦", "A♣"))
    assert not is_legal_capture(parse_card_id("Q♠"), cards("10♦", "2♣"))


def test_mixed_rank_requires_sum_rule():
    five = parse_card_id("5♠")
    assert not is_legal_capture(five, cards("5♦", "2♣"))
    assert is_legal_capture(five, cards("5♦"))


def test_enumerate_captures_lists_each_legal_subset():
    board = cards("7♠", "3♦", "4♣", "K♦", "5♥")
    captures = enumerate_captures(parse_card_id("7♥"), board)
    assert set(captures) == {
        tuple(cards("7♠")),
        tuple(cards("3♦", "4♣")),
    }
    assert enumerate_captures(parse_card_id("K♣"), board) == [tuple(cards("K♦"))]
    assert enumerate_captures(parse_card_id("9♣"), cards("Q♦", "J♥")) == []


def test_enumerate_matches_brute_force():
    rng = Random(1234)
    deck = build_deck()
    for _ in range(60):
        rng.shuffle(deck)
        size = rng.randint(0, 9)
        hand_card, board = deck[0], deck[1 : 1 + size]
        brute = set()
        for n in range(1, len(board) + 1):
            for subset in combinations(board, n):
                if is_legal_capture(hand_card, subset):
                    brute.add(frozenset(subset))
        found = [frozenset(subset) for subset in enumerate_captures(hand_card, board)]
        assert len(found) == len(set(found))
        assert set(found) == brute


def test_count_sum_subsets_ignores_face_cards():
    board = cards("5♦", "2♥", "3♣", "Q♠")
    assert count_sum_subsets(5, board) == 2
    assert count_sum_subsets(10, board) == 1
    assert count_sum_subsets(4, board) == 0
