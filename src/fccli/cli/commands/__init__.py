from typing import Callable, Optional

from fccli.cli.context import FcContext


class BaseCommand:
    def __init__(self, context: FcContext = None):
        self.context = context
        self.result = None

    @property
    def config(self):
        return self.context.config

    @property
    def client(self):
        return self.context.client

    @property
    def location(self):
        return self.context.location

    @property
    def repo(self):
        return self.context.repo

    def resolve(self, path: Optional[str] = None) -> str:
        return self.context.resolve(path)


def confirm(message: str, assume_yes: bool = False, prompt: Callable[[str], str] = input) -> bool:
    """Ask for confirmation. Only an answer of exactly "Y" confirms."""
    if assume_yes:
        return True
    try:
        answer = prompt(f'{message} [Y/n]: ')
    except EOFError:
        return False
    return answer.strip() == 'Y'
