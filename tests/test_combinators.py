"""
Test Suite for the control operators

Tests:
1. Sequential (;)       - right always runs, TERMINATE short-circuits
2. Conditional AND (&&) - right only after success
3. Conditional OR (||)  - right only after failure
4. Pipe (|)             - right side's status wins, isolation of side effects
5. Parallel (&)         - failure if either branch fails, isolation
6. Setup failures       - refused pipe/fork gives status 1, forked children reaped
"""
import errno
import os
import signal
import time

from tree_shell.command_tree import Binary, Operator, Redirect, Word
from tree_shell.constants import SETUP_FAILURE_STATUS, TERMINATE_EXIT_CODE
from tree_shell.exit_status import ShellSignal


def fail_on_call(launcher, monkeypatch, failing_call):
    """Make the n-th spawn() issued by the test process fail like a refused fork"""
    real_spawn = launcher.spawn
    parent = os.getpid()
    calls = []

    def spawn(child_main):
        if os.getpid() == parent:
            calls.append(child_main)
            if len(calls) == failing_call:
                raise OSError(errno.EAGAIN, 'Resource temporarily unavailable')
        return real_spawn(child_main)

    monkeypatch.setattr(launcher, 'spawn', spawn)


# ============================================================================
# SEQUENTIAL
# ============================================================================

def test_sequence_runs_right_after_failure(run, workdir):
    assert run('false ; echo A > a.txt') == 0
    assert (workdir / 'a.txt').read_text() == 'A\n'


def test_sequence_returns_right_status(run):
    assert run('true ; false') == 1


def test_sequence_stops_on_terminate(run, workdir):
    assert run('exit ; echo A > a.txt') is ShellSignal.TERMINATE
    assert not (workdir / 'a.txt').exists()


def test_sequence_left_finishes_before_right_starts(run, workdir):
    assert run("sh -c 'sleep 0.2; echo first >> order.txt' ; echo second >> order.txt") == 0
    assert (workdir / 'order.txt').read_text() == 'first\nsecond\n'


# ============================================================================
# CONDITIONAL AND
# ============================================================================

def test_and_skips_right_after_failure(run, workdir):
    status = run('false && echo A > a.txt')

    assert status != 0
    assert not (workdir / 'a.txt').exists()


def test_and_keeps_left_failure_status(run):
    assert run("sh -c 'exit 4' && true") == 4


def test_and_runs_right_after_success(run, workdir):
    assert run('true && echo A > a.txt') == 0
    assert (workdir / 'a.txt').read_text() == 'A\n'


def test_and_terminate_propagates(run):
    assert run('true && exit') is ShellSignal.TERMINATE
    assert run('quit && echo never') is ShellSignal.TERMINATE


# ============================================================================
# CONDITIONAL OR
# ============================================================================

def test_or_skips_right_after_success(run, workdir):
    assert run('true || echo A > a.txt') == 0
    assert not (workdir / 'a.txt').exists()


def test_or_runs_right_after_failure(run, workdir):
    assert run('false || echo A > a.txt') == 0
    assert (workdir / 'a.txt').read_text() == 'A\n'


def test_or_returns_right_status(run):
    assert run("false || sh -c 'exit 5'") == 5


def test_or_terminate_propagates(run):
    assert run('false || exit') is ShellSignal.TERMINATE
    assert run('exit || true') is ShellSignal.TERMINATE


def test_chained_conditionals(run, workdir):
    assert run('false && echo no > a.txt || echo yes > b.txt') == 0
    assert not (workdir / 'a.txt').exists()
    assert (workdir / 'b.txt').read_text() == 'yes\n'


# ============================================================================
# PIPE
# ============================================================================

def test_pipe_feeds_left_output_to_right(run, workdir):
    assert run("printf 'hi' | wc -c > count.txt") == 0
    assert (workdir / 'count.txt').read_text().strip() == '2'


def test_pipe_returns_right_status_even_if_left_fails(run, workdir):
    status = run("sh -c 'printf abc; exit 3' | wc -c > count.txt")

    assert status == 0
    assert (workdir / 'count.txt').read_text().strip() == '3'


def test_pipe_returns_right_failure(run):
    assert run('true | false') == 1
    assert run("true | sh -c 'exit 6'") == 6


def test_pipe_chain(run, workdir):
    assert run("printf 'b\\na\\nb\\n' | sort | uniq > uniq.txt") == 0
    assert (workdir / 'uniq.txt').read_text() == 'a\nb\n'


def test_pipe_with_compound_left_side(executor, leaf, workdir):
    tree = Binary(Operator.PIPE,
                  Binary(Operator.SEQUENTIAL, leaf('printf', 'ab'), leaf('printf', 'cd')),
                  leaf("cat", output_redirect=Redirect(Word.literal("joined.txt"))))

    assert executor.execute(tree) == 0
    assert (workdir / 'joined.txt').read_text() == 'abcd'


def test_pipe_reader_sees_end_of_stream(run, workdir):
    # cat only exits once every write end is closed
    assert run("echo done | cat > out.txt") == 0
    assert (workdir / 'out.txt').read_text() == 'done\n'


def test_pipe_uses_one_channel_and_two_children(run, launcher):
    run('true | true')

    assert launcher.stats['pipe'] == 1
    assert launcher.stats['fork'] == 2
    assert launcher.stats['wait'] == 2


def test_cd_inside_pipe_does_not_move_orchestrator(run, workdir):
    (workdir / 'sub').mkdir()

    run('cd sub | true')

    assert os.getcwd() == str(workdir.resolve())


def test_assignment_inside_pipe_is_invisible(run, environment):
    run('PIPED=1 | true')

    assert 'PIPED' not in environment


def test_exit_inside_pipe_does_not_terminate_session(run):
    assert run('true | exit') == TERMINATE_EXIT_CODE


def _fail_after(seconds):
    def _on_alarm(signum, frame):
        raise TimeoutError(f"pipeline still running after {seconds}s")
    previous = signal.signal(signal.SIGALRM, _on_alarm)
    signal.alarm(seconds)
    return previous


def test_pipe_writer_dies_when_reader_exits(run, workdir):
    # the writer loops forever unless SIGPIPE kills it
    previous = _fail_after(10)
    try:
        status = run("sh -c 'while :; do echo x; done' | head -n 1 > first.txt")
    finally:
        signal.alarm(0)
        signal.signal(signal.SIGALRM, previous)

    assert status == 0
    assert (workdir / 'first.txt').read_text() == 'x\n'


def test_pipe_channel_failure(run, launcher, monkeypatch, capfd):
    def no_channel():
        raise OSError(errno.EMFILE, 'Too many open files')
    monkeypatch.setattr(launcher, 'create_channel', no_channel)

    assert run('true | true') == SETUP_FAILURE_STATUS
    assert launcher.stats['fork'] == 0
    assert 'pipe: Too many open files' in capfd.readouterr().err


def test_pipe_fork_failure_reaps_left_side(run, launcher, monkeypatch, capfd):
    fail_on_call(launcher, monkeypatch, 2)

    assert run('true | true') == SETUP_FAILURE_STATUS
    assert launcher.stats['fork'] == 1
    assert launcher.stats['wait'] == 1
    assert 'fork:' in capfd.readouterr().err


# ============================================================================
# PARALLEL
# ============================================================================

def test_parallel_both_succeed(run):
    assert run('true & true') == 0


def test_parallel_fails_if_either_fails(run):
    assert run('false & true') == 1
    assert run('true & false') == 1
    assert run("sh -c 'sleep 0.2; exit 2' & true") == 1
    assert run("true & sh -c 'sleep 0.2; exit 2'") == 1


def test_parallel_runs_branches_concurrently(run):
    start = time.monotonic()

    assert run('sleep 0.5 & sleep 0.5') == 0

    assert time.monotonic() - start < 0.95


def test_parallel_both_effects_happen(run, workdir):
    assert run('echo a > a.txt & echo b > b.txt') == 0
    assert (workdir / 'a.txt').read_text() == 'a\n'
    assert (workdir / 'b.txt').read_text() == 'b\n'


def test_parallel_reaps_both_children(run, launcher):
    run('true & false')

    assert launcher.stats['fork'] == 2
    assert launcher.stats['wait'] == 2


def test_parallel_branches_are_isolated(run, workdir, environment):
    (workdir / 'sub').mkdir()

    run('cd sub & BRANCH=1')

    assert os.getcwd() == str(workdir.resolve())
    assert 'BRANCH' not in environment


def test_exit_inside_parallel_is_only_a_failure(run):
    assert run('exit & true') == 1
    assert run('true & quit') == 1


def test_parallel_fork_failure_reaps_forked_branch(run, launcher, monkeypatch, capfd):
    fail_on_call(launcher, monkeypatch, 2)

    assert run('true & true') == SETUP_FAILURE_STATUS
    assert launcher.stats['fork'] == 1
    assert launcher.stats['wait'] == 1
    assert 'fork:' in capfd.readouterr().err


def test_parallel_first_fork_failure(run, launcher, monkeypatch):
    fail_on_call(launcher, monkeypatch, 1)

    assert run('true & true') == SETUP_FAILURE_STATUS
    assert launcher.stats['fork'] == 0
    assert launcher.stats['wait'] == 0
