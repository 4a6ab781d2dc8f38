"""Call-site analyzer: flags calls whose argument fails a predicate."""

from dataclasses import dataclass

from huntcore.analysis import Analyzer as BaseAnalyzer
from huntcore.analysis import ArgumentPredicate, Pass
from huntcore.ir import walk_calls


@dataclass
class Analyzer(BaseAnalyzer):
    """Report calls to name whose argument at args_index is not safe.

    name is matched exactly against the called function, including the
    module.method form used for calls on imports. args_index is the
    position of the argument, starting at 1.
    """
    name: str
    args_index: int
    arg_value: ArgumentPredicate
    id: str = ""

    def run(self, pass_: Pass):
        for call in walk_calls(pass_.file):
            if call.function.name != self.name:
                continue
            if not 1 <= self.args_index <= len(call.args):
                continue
            if not self.arg_value.run(call.args[self.args_index - 1]):
                pass_.report(self.id, call)
