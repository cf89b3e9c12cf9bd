"""Interactive shell. Every line is parsed by the same argument parser as the
command line, so the shell accepts exactly the same commands."""
import cmd
import logging

from fccli.cli import execute_line
from fccli.cli.context import FcContext
from fccli.exceptions import FcCliError

logger = logging.getLogger(__name__)

PROMPT = 'fedora$ '
EXIT_COMMANDS = ('exit', 'quit', 'EOF')


class FcShell(cmd.Cmd):
    prompt = PROMPT

    def __init__(self, context: FcContext, **kwargs):
        super().__init__(**kwargs)
        self.context = context
        self.intro = f'fccli {context.version}: connected to {context.endpoint.url}\nType "help" for a list of commands.'

    def onecmd(self, line: str) -> bool:
        line = line.strip()
        if line in EXIT_COMMANDS:
            if line == 'EOF':
                print()
            return True
        if not line:
            return False
        if line == 'help':
            self.context.parser.print_help()
            return False
        if line.startswith('help '):
            execute_line(self.context, line[len('help '):] + ' --help')
            return False
        execute_line(self.context, line)
        return False

    def completenames(self, text, *ignored):
        names = [*self.context.command_modules, 'exit', 'quit', 'help']
        return sorted(name for name in names if name.startswith(text))

    def complete_cd(self, text, line, begidx, endidx):
        try:
            listing = self.context.location.list_children()
        except FcCliError as e:
            logger.debug(f'No completions: {e}')
            return []
        return [child + '/' for child in listing if child.startswith(text)]

    complete_ls = complete_cd
    complete_info = complete_cd

    def run(self):
        self.context.interactive = True
        try:
            while True:
                try:
                    self.cmdloop()
                    break
                except KeyboardInterrupt:
                    # discard the current line, and keep going
                    print('^C')
                    self.intro = None
        finally:
            self.context.interactive = False
