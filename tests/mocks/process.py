"""
Fake command runner for testing.

Records every command instead of starting processes and answers from a
table of scripted responses matched by argument prefix.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from devstrap.core.exceptions import CommandNotFoundError
from devstrap.core.process import CommandResult, CommandRunner


class FakeRunner(CommandRunner):
    """
    CommandRunner that never spawns processes.

    Responses are registered per argument prefix; the longest matching prefix
    wins. A response is an exit code, an (exit code, stdout) tuple, or an
    exception instance to raise. When several responses are registered for
    one prefix they are returned in order and the last one repeats.

    Example:
        >>> runner = FakeRunner()
        >>> runner.add(["git", "--version"], (0, "git version 2.45.1.windows.1"))
        >>> runner.run(["git", "--version"]).stdout
        'git version 2.45.1.windows.1'
    """

    def __init__(self, missing: Iterable[str] = ()):
        self.missing = set(missing)
        self.calls: List[Tuple[str, ...]] = []
        self.envs: List[Optional[Dict[str, str]]] = []
        self.logged_secrets: List[Sequence[str]] = []
        self._responses: Dict[Tuple[str, ...], list] = {}

    def add(self, prefix: Sequence[str], *responses):
        self._responses[tuple(prefix)] = list(responses) or [0]
        return self

    def resolve(self, command: str, env: Optional[Mapping[str, str]] = None) -> str:
        if command in self.missing:
            raise CommandNotFoundError(command)
        return command

    def run(
        self,
        args: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        secrets: Sequence[str] = (),
    ) -> CommandResult:
        args = tuple(str(a) for a in args)
        self.calls.append(args)
        self.envs.append(dict(env) if env is not None else None)
        self.logged_secrets.append(tuple(secrets))
        self.resolve(args[0], env)

        response = self._next_response(args)
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, tuple):
            code, stdout = response
            return CommandResult(args, code, stdout)
        return CommandResult(args, response)

    def _next_response(self, args: Tuple[str, ...]):
        best = None
        for prefix in self._responses:
            if args[: len(prefix)] == prefix and (best is None or len(prefix) > len(best)):
                best = prefix
        if best is None:
            return 0
        queue = self._responses[best]
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def calls_to(self, *prefix: str) -> List[Tuple[str, ...]]:
        return [c for c in self.calls if c[: len(prefix)] == prefix]
