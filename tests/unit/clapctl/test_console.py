"""Terminal output helper tests."""

from __future__ import annotations

import io
from datetime import datetime

from rich.console import Console

from clapctl import console
from clapctl.deployment.models import StackInfo


def _capture():
    buffer = io.StringIO()
    return buffer, Console(file=buffer, width=120, color_system=None)


def test_stack_table_formats_rows():
    buffer, target = _capture()
    target.print(
        console.stack_table(
            [StackInfo(name='db', status='UPDATE_ROLLBACK_COMPLETE', created_at=datetime(2024, 1, 2, 3, 4, 5))]
        )
    )
    out = buffer.getvalue()
    assert 'CreateAt' in out
    assert 'update rollback complete' in out
    assert '2024-01-02 03:04:05' in out


def test_spinner_stop_is_idempotent():
    _, target = _capture()
    spinner = console.Spinner('Deploying', target=target)

    with spinner as progress:
        progress.update(' StorageBucket => CREATE_COMPLETE')
        progress.stop()

    spinner.stop()


def test_error_escapes_markup(capsys):
    console.error('bad input [type=value_error]')
    assert '[type=value_error]' in capsys.readouterr().err
