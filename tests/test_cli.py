import io
import os
import tempfile
from contextlib import redirect_stderr, redirect_stdout
from unittest import TestCase, main

import matplotlib

matplotlib.use("Agg")

from chomsky.cli import cnf_main, cyk_main

CNF_GRAMMAR = "3\nS:AB\nA:0\nB:1\n"
UNIT_GRAMMAR = "4\nS:A\nA:B\nB:S\nS:0\n"


def run(command, argv: list[str], stdin: str) -> tuple[int, str, str]:
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        status = command(argv, stdin=io.StringIO(stdin))
    return status, out.getvalue(), err.getvalue()


class TestCYKCommand(TestCase):
    def test_cnf_input(self):
        """A CNF grammar is checked directly"""
        self.assertEqual(run(cyk_main, [], CNF_GRAMMAR + "01\n"), (0, "Yes\n", ""))
        self.assertEqual(run(cyk_main, [], CNF_GRAMMAR + "10\n"), (0, "No\n", ""))

    def test_convert(self):
        """'+' converts to CNF before checking"""
        self.assertEqual(run(cyk_main, ["+"], UNIT_GRAMMAR + "0")[:2], (0, "Yes\n"))
        self.assertEqual(run(cyk_main, ["--convert"], UNIT_GRAMMAR + "00")[:2], (0, "No\n"))

    def test_not_cnf(self):
        """Strict mode rejects a grammar outside CNF as a usage error"""
        err = io.StringIO()
        with redirect_stderr(err), self.assertRaises(SystemExit) as e:
            cyk_main([], stdin=io.StringIO(UNIT_GRAMMAR + "0"))
        self.assertEqual(e.exception.code, 2)
        self.assertIn("not in CNF", err.getvalue())

    def test_syntax_error(self):
        status, out, err = run(cyk_main, [], "2\nS:AB\n")
        self.assertEqual(status, 1)
        self.assertEqual(out, "")
        self.assertIn("unexpected end of input", err)

    def test_empty_word(self):
        self.assertEqual(run(cyk_main, [], CNF_GRAMMAR)[1], "No\n")
        self.assertEqual(run(cyk_main, ["+"], "2\nS:0S1\nS:\n")[1], "Yes\n")

    def test_first_word_only(self):
        self.assertEqual(run(cyk_main, [], CNF_GRAMMAR + "  01 10\n")[1], "Yes\n")

    def test_table(self):
        status, out, _ = run(cyk_main, ["--table"], CNF_GRAMMAR + "01")
        self.assertEqual(status, 0)
        self.assertEqual(out.splitlines()[-1], "Yes")
        self.assertIn("0:0", out)


class TestCNFCommand(TestCase):
    def test_print(self):
        """Print the converted grammar"""
        status, out, _ = run(cnf_main, [], "3\nS:A0\nA:1\nA:\n")
        self.assertEqual(status, 0)
        self.assertEqual(out, "4\n<S>:0\n<S>:<A><T0>\n<A>:1\n<T0>:0\n")

    def test_syntax_error(self):
        status, _, err = run(cnf_main, [], "1\nS=A\n")
        self.assertEqual(status, 1)
        self.assertIn("expected ':'", err)

    def test_plot(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "units.png")
            status, _, _ = run(cnf_main, ["--plot", path], UNIT_GRAMMAR)
            self.assertEqual(status, 0)
            self.assertTrue(os.path.getsize(path) > 0)


if __name__ == "__main__":
    main(verbosity=2)
