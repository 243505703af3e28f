from textual.widgets import Static
from rich.table import Table

class StatusView(Static):
    def update_status(self, sink, state):
        if not sink or not sink.is_setup:
            self.update("Dev log not set up.")
            return

        table = Table(title="Dev log", expand=True, show_header=False)
        table.add_column("Key", no_wrap=True)
        table.add_column("Value")

        filepath = sink.get_filepath()
        content = sink.get_content()
        table.add_row("Command", state.command or "-")
        if state.running:
            table.add_row("Process", "[green]running[/green]")
        elif state.exit_code is not None:
            color = "green" if state.exit_code == 0 else "red"
            table.add_row("Process", f"[{color}]exited {state.exit_code}[/{color}]")
        else:
            table.add_row("Process", "idle")
        table.add_row("Lines", f"{len(content) if content is not None else 0} shown / {state.lines_seen} seen")
        table.add_row("Window", "open" if sink.is_open() else "closed")
        table.add_row("File", str(filepath) if filepath else "-")
        if state.flutter_version:
            table.add_row("Flutter", str(state.flutter_version))
        if state.dart_version:
            table.add_row("Dart", str(state.dart_version))
        self.update(table)
