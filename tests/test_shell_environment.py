"""
Test Suite for ShellEnvironment (session environment table)
"""
import os

import pytest

from tree_shell.command_tree import Word, WordPart
from tree_shell.shell_environment import ShellEnvironment


def test_set_and_get():
    env = ShellEnvironment()
    env.set('file', 'test.txt')

    assert env.get('file') == 'test.txt'
    assert 'file' in env
    assert env.get('missing', 'default') == 'default'
    assert 'missing' not in env


def test_get_feeds_word_materialization():
    env = ShellEnvironment({'NAME': 'world'})
    word = Word((WordPart('hello-'), WordPart('NAME', expand=True), WordPart('UNSET', expand=True)))

    assert word.materialize(env) == 'hello-world'


def test_assign_splits_on_first_separator():
    env = ShellEnvironment()

    assert env.assign('X=a=b') == ('X', 'a=b')
    assert env.get('X') == 'a=b'


def test_assign_empty_value():
    env = ShellEnvironment()
    env.assign('EMPTY=')

    assert 'EMPTY' in env
    assert env.get('EMPTY') == ''


def test_assign_without_separator_is_rejected():
    with pytest.raises(ValueError):
        ShellEnvironment().assign('no_separator')


def test_from_process_is_a_snapshot(monkeypatch):
    monkeypatch.setenv('TREE_SHELL_TEST_VAR', 'before')
    env = ShellEnvironment.from_process()
    monkeypatch.setenv('TREE_SHELL_TEST_VAR', 'after')

    assert env.get('TREE_SHELL_TEST_VAR') == 'before'
    env.set('TREE_SHELL_TEST_VAR', 'mine')
    assert os.environ['TREE_SHELL_TEST_VAR'] == 'after'


def test_constructor_and_as_dict_do_not_alias():
    initial = {'A': '1'}
    env = ShellEnvironment(initial)
    exported = env.as_dict()

    initial['A'] = '2'
    exported['A'] = '3'

    assert env.get('A') == '1'
    assert len(env) == 1
