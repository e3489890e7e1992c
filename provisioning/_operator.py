# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import re
from abc import ABCMeta
from abc import abstractmethod
from pathlib import Path
from typing import Sequence


class Operator(metaclass=ABCMeta):
    """Human at the terminal who answers questions."""

    @abstractmethod
    def ask(self, prompt: str) -> str:
        pass

    @abstractmethod
    def tell(self, text: str):
        pass

    def agrees(self, prompt: str) -> bool:
        return re.fullmatch(r'y', self.ask(prompt).strip(), re.IGNORECASE) is not None

    def confirms(self, lines: Sequence[str], token: str) -> bool:
        self.tell(box(*lines, f"Type »{token}« to proceed!"))
        return self.ask('') == token


class ConsoleOperator(Operator):

    def ask(self, prompt):
        return input(prompt)

    def tell(self, text):
        print(text, flush=True)


class PathPrompt(metaclass=ABCMeta):
    """Resolve a file path that was not supplied in the environment."""

    @abstractmethod
    def resolve(self, message: str, directory: Path, extension: str) -> str:
        pass


class InteractivePathPrompt(PathPrompt):
    """Ask until an existing file is named.

    Input is either a path or a fragment of one. If exactly one file
    under the directory contains the fragment, it is taken.
    Otherwise, the matching files are listed and the question is repeated.
    """

    def __init__(self, operator: Operator):
        self._operator = operator

    def resolve(self, message, directory, extension):
        while True:
            answer = self._operator.ask(message).strip()
            if answer and Path(answer).is_file():
                return answer
            candidates = [
                path for path in sorted(directory.glob(f'**/*{extension}'))
                if answer in str(path)
                ]
            if len(candidates) == 1:
                return str(candidates[0])
            if candidates:
                self._operator.tell('\n'.join(str(path) for path in candidates))
            else:
                self._operator.tell(f"Nothing matches {answer!r} in {directory}")


def box(*lines: str, shift: int = 4) -> str:
    """Frame lines to make them stand out.

    >>> print(box('Provision now?', 'Type YES'))
        ┏━━━━━━━━━━━━━━┓
        ┃Provision now?┃
        ┃   Type YES   ┃
        ┗━━━━━━━━━━━━━━┛
    """
    size = max(len(line) for line in lines)
    indent = ' ' * shift
    return '\n'.join([
        indent + '┏' + '━' * size + '┓',
        *[indent + '┃' + line.center(size) + '┃' for line in lines],
        indent + '┗' + '━' * size + '┛',
        ])
