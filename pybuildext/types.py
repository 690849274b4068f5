from collections.abc import Callable, Mapping

Cmd = tuple[str, ...]
Env = Mapping[str, str]

Which = Callable[[str], str | None]
