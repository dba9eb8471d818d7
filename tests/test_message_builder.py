"""MessageCandidate → ChatMessage 변환 테스트"""

from itertools import count

from src.chat import MAX_TEXT_LENGTH, ChatMessage, MessageCandidate, build_messages, system_message
from src.chat.message_builder import truncate_text, unlock_message


def _ids():
    c = count(1)
    return lambda: f"m{next(c)}"


def test_build_enriches_known_author(registry):
    msgs = build_messages([MessageCandidate(text="배워갑니다", author="지나가던행인")], registry, _ids())
    assert msgs[0].id == "m1"
    assert msgs[0].avatar == "👤"
    assert msgs[0].tag == "뉴비"


def test_build_partial_name_match(registry):
    msgs = build_messages([MessageCandidate(text="hi", author="리누스님")], registry, _ids())
    assert msgs[0].avatar == "🐧"
    assert msgs[0].author == "리누스님"


def test_build_unknown_author_left_plain(registry):
    msgs = build_messages([MessageCandidate(text="hi", author="처음보는사람")], registry, _ids())
    assert msgs[0].avatar == ""
    assert msgs[0].tag == ""


def test_ids_are_unique_by_default():
    msgs = build_messages([MessageCandidate(text="a"), MessageCandidate(text="b")])
    assert msgs[0].id != msgs[1].id


def test_text_truncated():
    long_text = "가" * 300
    out = truncate_text(long_text)
    assert len(out) == MAX_TEXT_LENGTH
    assert out.endswith("…")
    assert truncate_text("  a \n b  ") == "a b"


def test_system_and_unlock_message(registry):
    jobs = registry.get("viewer_jobs")
    msg = unlock_message(jobs, 1500, _ids())
    assert msg.kind == "system"
    assert msg.author == "시스템"
    assert "잡스" in msg.text and "1,500" in msg.text
    assert msg.avatar == "🍎"
    assert system_message("공지").avatar == "📢"


def test_to_dict_keys():
    m = ChatMessage(id="x", text="t", kind="weird", author="a", donation=5, message_background="#000")
    d = m.to_dict()
    assert d["type"] == "newbie"
    assert d["messageBackground"] == "#000"
    assert d["donation"] == 5
    assert "donation" not in ChatMessage(id="y", text="t", kind="pro").to_dict()
