"""
Small PyQt5 desktop client for the equipment API.

- Sign in once with the Django username/password; the credentials live on a
  `ClientSession` that is thrown away on sign-out.
- Choosing a CSV asks the server for a preview; nothing is stored until
  "Confirm upload" is pressed.
- Matplotlib draws the equipment type distribution.
- Every HTTP call runs on a worker thread so the window does not freeze.
"""
import sys
from datetime import datetime
from typing import Any, Callable, Dict

from PyQt5.QtCore import Qt, QThread, pyqtSignal
from PyQt5.QtWidgets import (
    QApplication,
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QPushButton,
    QLabel,
    QFileDialog,
    QLineEdit,
    QMessageBox,
    QFormLayout,
    QListWidget,
    QListWidgetItem,
    QTableWidget,
    QTableWidgetItem,
)

from matplotlib.backends.backend_qt5agg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.figure import Figure

from api_client import ApiClient, ApiError, ClientSession

PREVIEW_ROWS = 10


class ApiWorker(QThread):
    """Runs one API call in the background and emits (session, result, error)."""

    finished_with_result = pyqtSignal(object, object, object)

    def __init__(self, session: ClientSession | None, call: Callable[[], Any]):
        super().__init__()
        self.session = session
        self.call = call

    def run(self) -> None:
        try:
            result = self.call()
            error = None
        except ApiError as exc:
            result, error = None, exc.message
        except OSError as exc:
            # Local file problems (missing file, permissions, ...).
            result, error = None, str(exc)
        except ValueError:
            # A 2xx answer whose body is not JSON.
            result, error = None, "Unexpected response from the server."
        except Exception as exc:  # noqa: BLE001
            result, error = None, f"Unexpected error: {exc}"

        # Emit result back to the main (GUI) thread.
        self.finished_with_result.emit(self.session, result, error)


class EquipmentChartCanvas(FigureCanvas):
    """Tiny Matplotlib canvas that draws the bar chart used in the UI."""

    def __init__(self, parent: QWidget | None = None):
        self.fig = Figure(figsize=(5, 3), facecolor="#020617")  # slate‑900
        super().__init__(self.fig)
        self.setParent(parent)
        self.ax = self.fig.add_subplot(111)
        self.fig.tight_layout()

    def plot_distribution(self, type_distribution: Dict[str, int]) -> None:
        self.ax.clear()

        if not type_distribution:
            self.ax.text(
                0.5,
                0.5,
                "No data yet",
                ha="center",
                va="center",
                color="white",
                fontsize=10,
                transform=self.ax.transAxes,
            )
        else:
            labels = list(type_distribution.keys())
            values = list(type_distribution.values())
            bar_colors = ["#0891b2"] * len(values)  # teal accent

            self.ax.bar(labels, values, color=bar_colors)
            self.ax.set_title("Equipment type distribution", color="white")
            self.ax.set_ylabel("Count", color="white")
            self.ax.tick_params(axis="x", labelrotation=30, labelcolor="white")
            self.ax.tick_params(axis="y", labelcolor="white")
            self.ax.set_facecolor("#020617")  # slate‑900

        self.fig.patch.set_facecolor("#020617")
        self.draw()


def format_number(value: float | None) -> str:
    return "-" if value is None else f"{value:.2f}"


def format_summary(record_count: int, summary: Dict[str, Any] | None) -> str:
    summary = summary or {}
    lines = [
        f"Total equipment count: {record_count}",
        f"Average flowrate: {summary.get('avgFlowrate', 0):.2f}",
        f"Average pressure: {summary.get('avgPressure', 0):.2f}",
        f"Average temperature: {summary.get('avgTemperature', 0):.2f}",
    ]
    return "\n".join(lines)


class MainWindow(QWidget):
    def __init__(self, api: ApiClient):
        super().__init__()
        self.setWindowTitle("Chemical Equipment Parameter Visualizer - Desktop")
        self.setMinimumSize(960, 640)

        self.api = api
        self.session: ClientSession | None = None
        # Workers are kept referenced until they finish, otherwise Qt may
        # destroy a running thread.
        self.workers: list[ApiWorker] = []

        self._build_ui()
        self._update_controls()

    def _build_ui(self) -> None:
        main_layout = QVBoxLayout()
        main_layout.setContentsMargins(16, 16, 16, 16)
        main_layout.setSpacing(12)

        title = QLabel("Chemical Equipment Parameter Visualizer")
        title.setStyleSheet("color: #0f766e; font-size: 20px; font-weight: 600;")
        main_layout.addWidget(title)

        subtitle = QLabel(
            "Sign in, pick an equipment CSV, check the preview and confirm the upload."
        )
        subtitle.setStyleSheet("color: #cbd5f5; font-size: 11px;")
        main_layout.addWidget(subtitle)

        top_row = QHBoxLayout()
        top_row.setSpacing(10)

        # Auth form
        auth_column = QFormLayout()
        auth_label = QLabel("Account")
        auth_label.setStyleSheet("color: #e5e7eb; font-size: 11px;")

        input_style = "background-color: #020617; color: white; border: 1px solid #374151; padding: 4px;"
        self.username_input = QLineEdit()
        self.username_input.setPlaceholderText("Username")
        self.username_input.setStyleSheet(input_style)

        self.password_input = QLineEdit()
        self.password_input.setPlaceholderText("Password")
        self.password_input.setEchoMode(QLineEdit.Password)
        self.password_input.setStyleSheet(input_style)

        self.sign_in_button = QPushButton("Sign in")
        self.sign_in_button.setStyleSheet(
            "background-color: #0891b2; color: #020617; padding: 4px 12px; border-radius: 4px;"
        )
        self.sign_in_button.clicked.connect(self.on_sign_in_clicked)

        auth_column.addRow(auth_label)
        auth_column.addRow("Username:", self.username_input)
        auth_column.addRow("Password:", self.password_input)
        auth_column.addRow(self.sign_in_button)

        # File selection side
        file_column = QVBoxLayout()
        file_label = QLabel("Equipment CSV")
        file_label.setStyleSheet("color: #e5e7eb; font-size: 11px;")

        self.file_path_label = QLabel("No file selected")
        self.file_path_label.setStyleSheet("color: #9ca3af; font-size: 10px;")

        self.select_button = QPushButton("Browse...")
        self.select_button.setStyleSheet(
            "background-color: #0891b2; color: #020617; padding: 6px 12px; border-radius: 4px;"
        )
        self.select_button.clicked.connect(self.on_select_file)

        file_column.addWidget(file_label)
        file_column.addWidget(self.select_button)
        file_column.addWidget(self.file_path_label)

        self.confirm_button = QPushButton("Confirm upload")
        self.confirm_button.setStyleSheet(
            "background-color: #0f766e; color: #e5e7eb; padding: 8px 18px; border-radius: 4px;"
        )
        self.confirm_button.clicked.connect(self.on_confirm_clicked)

        top_row.addLayout(auth_column, stretch=2)
        top_row.addLayout(file_column, stretch=2)
        top_row.addWidget(self.confirm_button, stretch=1)
        main_layout.addLayout(top_row)

        # Info label for errors / status
        self.info_label = QLabel("")
        self.info_label.setStyleSheet("color: #fecaca; font-size: 11px;")
        main_layout.addWidget(self.info_label)

        # Preview of the parsed file, first few rows only.
        self.preview_label = QLabel("Preview")
        self.preview_label.setStyleSheet("color: #e5e7eb; font-size: 12px; font-weight: 600;")
        main_layout.addWidget(self.preview_label)

        self.preview_table = QTableWidget(0, 5)
        self.preview_table.setHorizontalHeaderLabels(
            ["Equipment Name", "Type", "Flowrate", "Pressure", "Temperature"]
        )
        self.preview_table.setStyleSheet(
            "background-color: #1e293b; color: #e5e7eb; border: 1px solid #374151; font-size: 10px;"
        )
        self.preview_table.setMaximumHeight(170)
        main_layout.addWidget(self.preview_table)

        # Bottom section: stats + chart
        bottom_row = QHBoxLayout()
        bottom_row.setSpacing(10)

        self.stats_label = QLabel("No statistics yet.\nUpload a CSV to see results.")
        self.stats_label.setWordWrap(True)
        self.stats_label.setStyleSheet("color: #e5e7eb; font-size: 11px;")
        bottom_row.addWidget(self.stats_label, stretch=1)

        self.chart_canvas = EquipmentChartCanvas(self)
        bottom_row.addWidget(self.chart_canvas, stretch=2)
        main_layout.addLayout(bottom_row)

        history_label = QLabel("Upload History (Last 5)")
        history_label.setStyleSheet("color: #e5e7eb; font-size: 14px; font-weight: 600; margin-top: 10px;")
        main_layout.addWidget(history_label)

        small_button_style = (
            "background-color: #0891b2; color: #020617; padding: 4px 8px; border-radius: 4px; font-size: 10px;"
        )
        history_header = QHBoxLayout()
        self.refresh_history_button = QPushButton("Refresh History")
        self.refresh_history_button.setStyleSheet(small_button_style)
        self.refresh_history_button.clicked.connect(self.on_refresh_history)
        self.report_button = QPushButton("Save PDF Report")
        self.report_button.setStyleSheet(small_button_style)
        self.report_button.clicked.connect(self.on_save_report)
        self.delete_button = QPushButton("Delete Upload")
        self.delete_button.setStyleSheet(small_button_style)
        self.delete_button.clicked.connect(self.on_delete_upload)
        history_header.addWidget(self.refresh_history_button)
        history_header.addWidget(self.report_button)
        history_header.addWidget(self.delete_button)
        history_header.addStretch()
        main_layout.addLayout(history_header)

        self.history_list = QListWidget()
        self.history_list.setStyleSheet(
            "background-color: #1e293b; color: #e5e7eb; border: 1px solid #374151; border-radius: 4px; font-size: 10px;"
        )
        self.history_list.setMaximumHeight(150)
        self.history_list.itemDoubleClicked.connect(self.on_history_item_opened)
        main_layout.addWidget(self.history_list)

        self.setLayout(main_layout)
        self.setStyleSheet("background-color: #020617;")  # slate‑900

    # -- background calls -------------------------------------------------

    def _run(self, call: Callable[[], Any], on_done: Callable[[Any, str | None], None]) -> None:
        worker = ApiWorker(self.session, call)

        def handle(session, result, error):
            self.workers.remove(worker)
            # Results for a session that has since signed out are dropped.
            if session is not None and (session is not self.session or not session.active):
                return
            on_done(result, error)

        worker.finished_with_result.connect(handle)
        self.workers.append(worker)
        worker.start()

    def _update_controls(self) -> None:
        signed_in = self.session is not None
        self.sign_in_button.setText("Sign out" if signed_in else "Sign in")
        self.username_input.setEnabled(not signed_in)
        self.password_input.setEnabled(not signed_in)
        self.select_button.setEnabled(signed_in)
        self.confirm_button.setEnabled(signed_in and bool(self.session.preview))
        for button in (self.refresh_history_button, self.report_button, self.delete_button):
            button.setEnabled(signed_in)

    # -- auth ---------------------------------------------------------------

    def on_sign_in_clicked(self) -> None:
        if self.session is not None:
            self.api.sign_out(self.session)
            self.session = None
            self._reset_view()
            self._update_controls()
            return

        username = self.username_input.text().strip()
        password = self.password_input.text()
        if not username or not password:
            self._show_error("Please enter username and password.")
            return

        self.sign_in_button.setEnabled(False)
        self._run(lambda: self.api.sign_in(username, password), self.on_signed_in)

    def on_signed_in(self, session: ClientSession | None, error: str | None) -> None:
        self.sign_in_button.setEnabled(True)
        if error:
            self._show_error(error)
            return
        self.session = session
        name = session.profile.get("full_name") or session.username
        self.info_label.setText(f"Signed in as {name}.")
        self._update_controls()
        self.on_refresh_history()

    def _reset_view(self) -> None:
        self.password_input.clear()
        self.file_path_label.setText("No file selected")
        self.preview_table.setRowCount(0)
        self.preview_label.setText("Preview")
        self.history_list.clear()
        self.stats_label.setText("No statistics yet.\nUpload a CSV to see results.")
        self.chart_canvas.plot_distribution({})
        self.info_label.setText("Signed out.")

    # -- upload -------------------------------------------------------------

    def on_select_file(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Select equipment CSV", "", "CSV files (*.csv);;All files (*.*)"
        )
        if not file_path or self.session is None:
            return

        session = self.session
        self.file_path_label.setText(file_path)
        self.info_label.setText("Reading file...")
        self._run(lambda: self.api.preview(session, file_path), self.on_preview_finished)

    def on_preview_finished(self, preview: Dict[str, Any] | None, error: str | None) -> None:
        self._update_controls()
        if error:
            self.preview_table.setRowCount(0)
            self._show_error(error)
            return

        rows = preview["rows"]
        self.preview_table.setRowCount(min(len(rows), PREVIEW_ROWS))
        for index, row in enumerate(rows[:PREVIEW_ROWS]):
            cells = [
                row["equipment_name"],
                row["equipment_type"],
                format_number(row["flowrate"]),
                format_number(row["pressure"]),
                format_number(row["temperature"]),
            ]
            for column, text in enumerate(cells):
                item = QTableWidgetItem(text)
                if column >= 2:
                    item.setTextAlignment(Qt.AlignRight | Qt.AlignVCenter)
                self.preview_table.setItem(index, column, item)

        shown = min(len(rows), PREVIEW_ROWS)
        self.preview_label.setText(
            f"Preview - {preview['record_count']} records found (showing {shown})"
        )
        self.stats_label.setText(format_summary(preview["record_count"], preview["summary"]))
        self.chart_canvas.plot_distribution(preview["summary"].get("typeDistribution", {}))
        self.info_label.setText("Check the preview, then press Confirm upload.")

    def on_confirm_clicked(self) -> None:
        if self.session is None or not self.session.preview:
            self._show_error("Please select a CSV file first.")
            return

        session = self.session
        # Disable the button during the upload so it's harder to spam the API.
        self.confirm_button.setEnabled(False)
        self.confirm_button.setText("Uploading...")
        self._run(lambda: self.api.confirm(session), self.on_confirm_finished)

    def on_confirm_finished(self, upload: Dict[str, Any] | None, error: str | None) -> None:
        self.confirm_button.setText("Confirm upload")
        self._update_controls()
        if error:
            # The preview is still on the session, so Confirm can be retried.
            self._show_error(error)
            return

        self.preview_table.setRowCount(0)
        self.preview_label.setText("Preview")
        self.stats_label.setText(format_summary(upload["record_count"], upload["summary"]))
        self.chart_canvas.plot_distribution((upload["summary"] or {}).get("typeDistribution", {}))
        self.info_label.setText("Upload complete.")
        self.on_refresh_history()

    # -- history --------------------------------------------------------------

    def on_refresh_history(self) -> None:
        if self.session is None:
            return
        session = self.session
        self._run(lambda: self.api.history(session), self.on_history_finished)

    def on_history_finished(self, history: list | None, error: str | None) -> None:
        if error:
            # History is not critical; keep whatever is on screen.
            self.info_label.setText(f"Could not load history: {error}")
            return

        self.history_list.clear()
        for entry in history or []:
            try:
                created_at = datetime.fromisoformat(entry["created_at"].replace("Z", "+00:00"))
                date_str = created_at.strftime("%Y-%m-%d %H:%M")
            except ValueError:
                date_str = entry["created_at"]

            item_text = f"{entry['filename']} - {entry['record_count']} records ({date_str})"
            item = QListWidgetItem(item_text)
            item.setData(Qt.UserRole, entry["id"])
            self.history_list.addItem(item)

    def _selected_upload_id(self) -> str | None:
        item = self.history_list.currentItem()
        if item is None:
            self._show_error("Select an upload in the history list first.")
            return None
        return item.data(Qt.UserRole)

    def on_history_item_opened(self, item: QListWidgetItem) -> None:
        if self.session is None:
            return
        session = self.session
        upload_id = item.data(Qt.UserRole)
        self._run(lambda: self.api.upload_detail(session, upload_id), self.on_detail_finished)

    def on_detail_finished(self, upload: Dict[str, Any] | None, error: str | None) -> None:
        if error:
            self._show_error(error)
            return
        self.session.current_upload = upload
        self.stats_label.setText(format_summary(upload["record_count"], upload["summary"]))
        self.chart_canvas.plot_distribution((upload["summary"] or {}).get("typeDistribution", {}))
        self.info_label.setText(f"Showing {upload['filename']}.")

    def on_save_report(self) -> None:
        upload_id = self._selected_upload_id()
        if upload_id is None:
            return
        target, _ = QFileDialog.getSaveFileName(
            self, "Save PDF report", "equipment-report.pdf", "PDF files (*.pdf)"
        )
        if not target:
            return
        session = self.session
        self._run(
            lambda: self.api.download_report(session, upload_id, target),
            lambda path, error: self._show_error(error) if error else self.info_label.setText(f"Saved {path}."),
        )

    def on_delete_upload(self) -> None:
        upload_id = self._selected_upload_id()
        if upload_id is None:
            return
        answer = QMessageBox.question(self, "Delete upload", "Delete this upload and its data?")
        if answer != QMessageBox.Yes:
            return
        session = self.session
        self._run(lambda: self.api.delete_upload(session, upload_id), self.on_delete_finished)

    def on_delete_finished(self, _result: Any, error: str | None) -> None:
        if error:
            self._show_error(error)
            return
        self.info_label.setText("Upload deleted.")
        self.on_refresh_history()

    def _show_error(self, message: str) -> None:
        self.info_label.setText(message)
        msg_box = QMessageBox(self)
        msg_box.setIcon(QMessageBox.Warning)
        msg_box.setWindowTitle("Error")
        msg_box.setText(message)
        msg_box.exec_()


def main() -> None:
    app = QApplication(sys.argv)
    window = MainWindow(ApiClient())
    window.show()
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
