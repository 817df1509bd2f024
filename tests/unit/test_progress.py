from __future__ import annotations

from unittest.mock import patch

from account_import.services.progress import ProgressTracker


def test_disabled_without_tty():
    with patch("account_import.services.progress.is_tty_enabled", return_value=False):
        with ProgressTracker(3) as p:
            p.advance()
            p.advance(2)
    assert p.pbar is None
    assert p.done == 3


def test_enabled_with_tty():
    with patch("account_import.services.progress.is_tty_enabled", return_value=True):
        with patch("account_import.services.progress.tqdm") as mock_tqdm:
            p = ProgressTracker(5, description="Importing users")
            p.advance()
            p.close()
    mock_tqdm.assert_called_once()
    assert mock_tqdm.call_args.kwargs["total"] == 5
    assert mock_tqdm.call_args.kwargs["desc"] == "Importing users"
    mock_tqdm.return_value.update.assert_called_once_with(1)
    mock_tqdm.return_value.close.assert_called_once()
    assert p.pbar is None


def test_zero_rows_never_creates_bar():
    with patch("account_import.services.progress.is_tty_enabled", return_value=True):
        with patch("account_import.services.progress.tqdm") as mock_tqdm:
            ProgressTracker(0).close()
    mock_tqdm.assert_not_called()
