# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
from typing import Sequence
from typing import Union

from provisioning._operator import Operator
from provisioning._operator import PathPrompt


class FakeOperator(Operator):
    """Answer from a script; EOF when the script is over."""

    def __init__(self, answers: Sequence[Union[str, BaseException]] = ()):
        self._answers = list(answers)
        self.prompts = []
        self.told = []

    def ask(self, prompt):
        self.prompts.append(prompt)
        if not self._answers:
            raise EOFError()
        answer = self._answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def tell(self, text):
        self.told.append(text)

    def output(self) -> str:
        return '\n'.join(self.told)


class FakePathPrompt(PathPrompt):

    def __init__(self, answers: Sequence[str] = ()):
        self._answers = list(answers)
        self.messages = []

    def resolve(self, message, directory, extension):
        self.messages.append(message)
        if not self._answers:
            raise AssertionError(f"Unexpected question: {message!r}")
        return self._answers.pop(0)
