import typing


def english_enumerate(items: typing.Iterable[str], conj: str = ", or ") -> str:
    """
    Joins ``items`` the way they would be listed in a sentence:
    ``english_enumerate(["a", "b", "c"])`` gives ``"a, b, or c"``.
    """
    words = list(items)
    if len(words) <= 1:
        return "".join(words)
    return ", ".join(words[:-1]) + conj + words[-1]
