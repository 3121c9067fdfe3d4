import logging
from rich.console import Console
from rich.markup import escape

# Internal Imports
from aic.constants import (
    DECISION_MODIFY,
    DECISION_NO,
    DECISION_YES,
    DEFAULT_MODEL,
    DEFAULT_USER_PROMPT,
    MISSING_TOKEN_MESSAGE,
)
from aic.core import GitBackend
from aic.errors import MissingKeyError, NoStagedChangesError, PushFailedError
from aic.schemas import CommitResult, Configuration
from aic.services.prompt_builder import build_messages, payload_text
from aic.utils import count_tokens

logger = logging.getLogger(__name__)


def format_commit_command(message: str) -> str:
    """Renders the equivalent shell command for display."""
    escaped = message.replace('"', '\\"')
    return f'git commit -m "{escaped}"'


class CommitEngine:
    """
    The Central Processing Unit of the application.
    Orchestrates Stage -> Diff -> Generate -> Decide -> Commit -> Push.

    Collaborators are injected so the flow can run against fakes:
    `git` is a GitBackend, `client` has generate(diff), `tui` has
    ask_commit_decision() and `editor` has edit(text).
    """

    def __init__(
        self,
        console: Console,
        config: Configuration,
        git: GitBackend,
        client,
        tui,
        editor,
    ):
        self.console = console
        self.config = config
        self.git = git
        self.client = client
        self.tui = tui
        self.editor = editor

    def run(
        self, add_all: bool = False, execute: bool = False, push: bool = False
    ) -> CommitResult:
        if not self.config.api_token:
            raise MissingKeyError(MISSING_TOKEN_MESSAGE)

        if add_all:
            self.console.print("📦 Staging all changes...", style="blue")
            self.git.stage_all()

        self.console.print("🔍 Analyzing staged changes...", style="blue")
        try:
            diff = self.git.staged_diff()
        except NoStagedChangesError:
            self.console.print(
                "⚠️  No staged changes detected in the git repository.",
                style="yellow",
            )
            self.console.print(
                "   Please add your changes with 'git add' first.", style="yellow"
            )
            logger.info("Nothing staged, exiting")
            return CommitResult(status="no_changes")

        message = self.generate_message(diff)
        self.present(message)

        decision = DECISION_YES if execute else self.tui.ask_commit_decision()
        if decision == DECISION_MODIFY:
            self.console.print(
                "✏️  Opening editor to modify commit message...", style="blue"
            )
            message = self.editor.edit(message).strip()
            if not message:
                self.console.print(
                    "⚠️  Aborting commit due to empty commit message.",
                    style="yellow",
                )
                return CommitResult(status="aborted")
        elif decision != DECISION_YES:
            if decision not in (DECISION_NO, None):
                self.console.print("⚠️  Invalid option.", style="yellow")
            self.console.print("📝 Command not executed.", style="blue")
            self.console.print(
                "You can copy and modify the command above.", style="dim"
            )
            logger.info("User declined the commit")
            return CommitResult(status="aborted", message=message)

        self.commit(message)
        result = CommitResult(status="committed", message=message)

        if push:
            self.console.print("▶ Running 'git push'...", style="green")
            try:
                self.git.push()
                result.pushed = True
                self.console.print("✔ Changes pushed successfully.", style="green")
            except PushFailedError as e:
                # The commit stays in place; only the push is reported as failed.
                result.push_error = e.stderr
                self.console.print(
                    f"⚠️  Failed to push changes: {escape(e.stderr)}",
                    style="bold red",
                )
        return result

    def generate_message(self, diff: str) -> str:
        model = self.config.model or DEFAULT_MODEL
        self.console.print(
            f"🤖 Using model: [bright_blue]{escape(model)}[/]", style="blue"
        )
        self._report_payload_size(diff, model)

        with self.console.status("✨ Generating commit message..."):
            message = self.client.generate(diff)
        logger.info(f"Generated commit message ({len(message)} characters)")
        return message

    def present(self, message: str):
        self.console.print("📋 Commit command:", style="bold green")
        self.console.print(escape(format_commit_command(message)), style="bright_white")

    def commit(self, message: str):
        self.console.print("\n🚀 Executing git commit...", style="blue")
        summary = self.git.commit(message)
        logger.info(f"Commit created: {summary}")
        self.console.print("🎉 Commit created successfully!", style="bold green")

    def _report_payload_size(self, diff: str, model: str):
        messages = build_messages(
            diff,
            self.config.system_prompt,
            self.config.user_prompt or DEFAULT_USER_PROMPT,
        )
        try:
            token_count = count_tokens(payload_text(messages), model=model)
        except Exception as e:
            # tiktoken needs to download encodings on first use.
            logger.warning(f"Could not estimate payload size: {e}")
            return
        self.console.print(f"   📊  Payload size: ~{token_count} tokens", style="dim")
