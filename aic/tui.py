# aic/tui.py

"""
Terminal User Interface (TUI) components for user interaction.
"""

import questionary

from aic.constants import DECISION_MODIFY, DECISION_NO, DECISION_YES


def ask_commit_decision():
    """
    Asks whether to execute the proposed commit.
    Returns 'yes', 'modify', 'no', or None if the prompt was cancelled.
    """
    return questionary.select(
        "Execute this commit?",
        choices=[
            questionary.Choice("✅ Yes, commit", value=DECISION_YES),
            questionary.Choice(
                "✏️  Modify message in editor", value=DECISION_MODIFY
            ),
            questionary.Separator(),
            questionary.Choice("❌ No, cancel", value=DECISION_NO),
        ],
    ).ask()
