"""${key} 占位符测试"""

from upmpack.core.placeholders import find_unresolved, lookup, substitute

META = {"name": "com.acme.widget", "version": "1.2.3"}


class TestSubstitute:
    def test_basic(self) -> None:
        assert substitute("Package ${name} v${version}", META) == "Package com.acme.widget v1.2.3"

    def test_unknown_key_retained(self) -> None:
        assert substitute("${name} ${missingKey}", META) == "com.acme.widget ${missingKey}"

    def test_first_source_wins(self) -> None:
        assert substitute("${version}", META, {"version": "9.9.9"}) == "1.2.3"
        assert substitute("${author}", META, {"author": "Ann"}) == "Ann"

    def test_non_scalar_values_ignored(self) -> None:
        assert lookup("keywords", [{"keywords": ["a", "b"]}]) is None
        assert substitute("${keywords}", {"keywords": ["a"]}) == "${keywords}"

    def test_numbers_formatted(self) -> None:
        assert substitute("${n}", {"n": 3}) == "3"

    def test_not_a_placeholder(self) -> None:
        assert substitute("$name {name} ${ name }", META) == "$name {name} ${ name }"


def test_find_unresolved() -> None:
    assert find_unresolved("a ${x} b ${y} ${x}") == ["x", "y", "x"]
    assert find_unresolved("nothing here") == []
