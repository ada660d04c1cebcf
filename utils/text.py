import re

# CJK Unified Ideographs + Extension A
_CJK_RE = re.compile(r"[\u4e00-\u9fff\u3400-\u4dbf]")
_LINEBREAK_RE = re.compile(r"[\r\n]+")


def _utf16_len(segment: str) -> int:
    # BMP 밖 문자(확장 B 등)는 서로게이트 2개로 센다
    return len(segment.encode("utf-16-le")) // 2


def approximate_word_count(text) -> int:
    """
    쿼터 계산용 대략적인 단어 수.
      - CJK 문자가 섞인 토막: 글자 수만큼 (UTF-16 단위)
      - 그 외 공백으로 나뉜 토막: 1개
    """
    trimmed = (text or "").strip()
    if not trimmed:
        return 0

    total = 0
    for segment in _LINEBREAK_RE.sub(" ", trimmed).split():
        if _CJK_RE.search(segment):
            total += _utf16_len(segment)
        else:
            total += 1
    return total
