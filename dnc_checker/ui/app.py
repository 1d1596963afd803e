"""Tkinter based desktop application for the DNC checker."""
from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
import tkinter as tk
from tkinter import filedialog, messagebox, ttk
from typing import Dict, Optional

from ..config import CheckerSettings, ConfigurationError
from ..factory import build_lookup_client, build_state_store, load_settings
from ..ingestion import bucket_filename, bucket_text, format_clipboard_text
from ..models import BUCKETS, BatchResults, BatchSummary, LookupResult
from ..orchestrator import BatchOrchestrator
from ..phone import SAMPLE_NUMBERS, normalize_numbers
from ..rate_limit import DelayPolicy


LOGGER = logging.getLogger(__name__)


class QueueObserver:
    """Forwards orchestrator notifications onto a queue drained by the Tk loop."""

    def __init__(self, event_queue: "queue.Queue[tuple]") -> None:
        self.event_queue = event_queue

    def on_start(self, total: int) -> None:
        self.event_queue.put(("start", total))

    def on_result(self, result: LookupResult) -> None:
        self.event_queue.put(("result", result))

    def on_progress(self, current: int, total: int) -> None:
        self.event_queue.put(("progress", current, total))

    def on_complete(self, summary: BatchSummary) -> None:
        self.event_queue.put(("done", summary))


def format_stats(summary: BatchSummary) -> str:
    return f"Total: {summary.total} | Clean: {summary.clean_rate}% | Time: {summary.elapsed_seconds}s"


def discard_pending_events(event_queue: "queue.Queue[tuple]") -> int:
    """Drop queued notifications, returning how many were discarded."""

    discarded = 0
    while True:
        try:
            event_queue.get_nowait()
        except queue.Empty:
            return discarded
        discarded += 1


def run_check_job(
    orchestrator: BatchOrchestrator,
    text: str,
    *,
    cancel_event: Optional[threading.Event] = None,
) -> Optional[BatchSummary]:
    """Normalise the pasted text and run it through the orchestrator."""

    return orchestrator.run(normalize_numbers(text), cancel_event=cancel_event)


class DncCheckerApp:
    """Main application window."""

    BUCKET_LABELS = {"clean": "Clean", "dnc": "DNC", "invalid": "Invalid"}

    def __init__(self, root: tk.Tk) -> None:
        self.root = root
        self.root.title("DNC Checker")
        self.root.geometry("960x680")
        self.root.minsize(820, 560)

        self.event_queue: "queue.Queue[tuple]" = queue.Queue()
        self.orchestrator = self._build_orchestrator()
        self._executor = ThreadPoolExecutor(max_workers=1)
        self.current_task: Optional[Future[Optional[BatchSummary]]] = None
        self._cancel_event: Optional[threading.Event] = None

        self.status_var = tk.StringVar(value="Idle")
        self.stats_var = tk.StringVar(value="")
        self.progress_var = tk.DoubleVar(value=0.0)
        self.count_vars: Dict[str, tk.StringVar] = {bucket: tk.StringVar(value="0") for bucket in BUCKETS}
        self.listboxes: Dict[str, tk.Listbox] = {}

        self._build_layout()
        self.restore_state()
        self.root.protocol("WM_DELETE_WINDOW", self.on_close)
        self.root.after(100, self._poll_queue)

    # ------------------------------------------------------------------
    def _build_layout(self) -> None:
        container = ttk.Frame(self.root, padding=12)
        container.pack(fill="both", expand=True)
        container.columnconfigure(0, weight=1)
        container.rowconfigure(2, weight=1)

        self._build_input_section(container)
        self._build_progress_section(container)
        self._build_results_section(container)

    # ------------------------------------------------------------------
    def _build_input_section(self, parent: ttk.Frame) -> None:
        frame = ttk.LabelFrame(parent, text="1. Phone numbers")
        frame.grid(row=0, column=0, sticky="ew")
        frame.columnconfigure(0, weight=1)

        self.input_text = tk.Text(frame, height=8, wrap="word")
        self.input_text.grid(row=0, column=0, columnspan=5, sticky="ew", padx=4, pady=4)

        ttk.Button(frame, text="Start", command=self.start_processing).grid(row=1, column=0, padx=4, pady=4, sticky="w")
        ttk.Button(frame, text="Load sample", command=self.load_sample).grid(row=1, column=1, padx=4, pady=4)
        ttk.Button(frame, text="Stop", command=self.stop_processing).grid(row=1, column=2, padx=4, pady=4)
        ttk.Button(frame, text="Reset", command=self.reset).grid(row=1, column=3, padx=4, pady=4)
        ttk.Button(frame, text="Copy all", command=self.copy_all).grid(row=1, column=4, padx=4, pady=4, sticky="e")

    # ------------------------------------------------------------------
    def _build_progress_section(self, parent: ttk.Frame) -> None:
        frame = ttk.LabelFrame(parent, text="2. Progress")
        frame.grid(row=1, column=0, sticky="ew", pady=(12, 0))
        frame.columnconfigure(0, weight=1)

        ttk.Progressbar(frame, maximum=100, variable=self.progress_var).grid(row=0, column=0, sticky="ew", padx=4, pady=4)
        ttk.Label(frame, textvariable=self.status_var).grid(row=1, column=0, sticky="w", padx=4)
        ttk.Label(frame, textvariable=self.stats_var).grid(row=2, column=0, sticky="w", padx=4, pady=(0, 4))

    # ------------------------------------------------------------------
    def _build_results_section(self, parent: ttk.Frame) -> None:
        frame = ttk.LabelFrame(parent, text="3. Results")
        frame.grid(row=2, column=0, sticky="nsew", pady=(12, 0))
        frame.rowconfigure(1, weight=1)

        for column, bucket in enumerate(BUCKETS):
            frame.columnconfigure(column, weight=1)
            header = ttk.Frame(frame)
            header.grid(row=0, column=column, sticky="ew", padx=4, pady=4)
            ttk.Label(header, text=self.BUCKET_LABELS[bucket]).pack(side="left")
            ttk.Label(header, textvariable=self.count_vars[bucket]).pack(side="left", padx=(6, 0))
            ttk.Button(header, text="Export", command=lambda b=bucket: self.export_bucket(b)).pack(side="right")

            listbox = tk.Listbox(frame, activestyle="none")
            listbox.grid(row=1, column=column, sticky="nsew", padx=4, pady=4)
            self.listboxes[bucket] = listbox

    # ------------------------------------------------------------------
    def load_sample(self) -> None:
        self.input_text.delete("1.0", "end")
        self.input_text.insert("1.0", "\n".join(SAMPLE_NUMBERS))

    # ------------------------------------------------------------------
    def start_processing(self) -> None:
        if self.current_task and not self.current_task.done():
            messagebox.showinfo("Job running", "Processing is already in progress.")
            return

        text = self.input_text.get("1.0", "end")
        if not normalize_numbers(text):
            messagebox.showwarning("No numbers", "Please enter some phone numbers")
            return

        self._clear_result_views()
        self.progress_var.set(0.0)
        self.status_var.set("Starting...")
        self._cancel_event = threading.Event()

        def worker() -> Optional[BatchSummary]:
            try:
                return run_check_job(self.orchestrator, text, cancel_event=self._cancel_event)
            except Exception as exc:  # pragma: no cover - GUI surface
                LOGGER.exception("Batch failed")
                self.event_queue.put(("error", exc))
            return None

        self.current_task = self._executor.submit(worker)

    # ------------------------------------------------------------------
    def stop_processing(self) -> None:
        if self.current_task and not self.current_task.done():
            if self._cancel_event:
                self._cancel_event.set()
            self.status_var.set("Stopping...")

    # ------------------------------------------------------------------
    def reset(self) -> None:
        if self.current_task and not self.current_task.done():
            if not messagebox.askyesno("Reset", "Processing is in progress. Reset anyway?"):
                return
        self.orchestrator.reset()
        discard_pending_events(self.event_queue)
        self.input_text.delete("1.0", "end")
        self._clear_result_views()
        self.progress_var.set(0.0)
        self.stats_var.set("")
        self.status_var.set("Idle")

    # ------------------------------------------------------------------
    def copy_all(self) -> None:
        results = self.orchestrator.state.results
        if not results.total():
            messagebox.showinfo("No results", "There are no results to copy yet.")
            return
        self.root.clipboard_clear()
        self.root.clipboard_append(format_clipboard_text(results))
        self.status_var.set("All results copied to clipboard")

    # ------------------------------------------------------------------
    def export_bucket(self, bucket: str) -> None:
        results = self.orchestrator.state.results
        if not results.bucket(bucket):
            messagebox.showinfo("Nothing to export", f"No {bucket} numbers to export!")
            return
        path = filedialog.asksaveasfilename(
            defaultextension=".txt",
            initialfile=bucket_filename(bucket),
            filetypes=[("Text", "*.txt"), ("All files", "*.*")],
        )
        if not path:
            return
        try:
            with open(path, "w", encoding="utf-8") as handle:
                handle.write(bucket_text(results, bucket))
        except OSError as exc:  # pragma: no cover - GUI surface
            messagebox.showerror("Export failed", str(exc))
            return
        self.status_var.set(f"Exported {len(results.bucket(bucket))} {bucket} numbers to {path}")

    # ------------------------------------------------------------------
    def restore_state(self) -> None:
        saved = self.orchestrator.restore()
        if saved is None:
            return
        if saved.numbers:
            self.input_text.insert("1.0", "\n".join(saved.numbers))
        if saved.results is not None:
            self._render_results(saved.results)
            self.status_var.set(f"Restored {saved.results.total()} results from the last session")

    # ------------------------------------------------------------------
    def _poll_queue(self) -> None:
        try:
            while True:
                event = self.event_queue.get_nowait()
                self._handle_event(event)
        except queue.Empty:
            pass
        finally:
            self.root.after(100, self._poll_queue)

    # ------------------------------------------------------------------
    def _handle_event(self, event: tuple) -> None:
        kind = event[0]
        if kind == "start":
            _, total = event
            self.status_var.set(f"Processing 0 of {total}")
        elif kind == "result":
            _, result = event
            bucket = result.status.value
            self.listboxes[bucket].insert("end", self._format_result(result))
            self.count_vars[bucket].set(str(self.listboxes[bucket].size()))
        elif kind == "progress":
            _, current, total = event
            self.progress_var.set(min(100.0, (current / total) * 100.0) if total else 0.0)
            self.status_var.set(f"Processing {current} of {total}")
        elif kind == "error":
            _, exc = event
            messagebox.showerror("Processing failed", str(exc))
            self.status_var.set("Processing failed")
        elif kind == "done":
            _, summary = event
            self.stats_var.set(format_stats(summary))
            self.status_var.set("Stopped" if summary.cancelled else "Complete")
            self.current_task = None
            self._cancel_event = None
            messagebox.showinfo("DNC Checker", summary.format_message())

    # ------------------------------------------------------------------
    def _render_results(self, results: BatchResults) -> None:
        self._clear_result_views()
        for bucket in BUCKETS:
            for result in results.bucket(bucket):
                self.listboxes[bucket].insert("end", self._format_result(result))
            self.count_vars[bucket].set(str(len(results.bucket(bucket))))

    def _clear_result_views(self) -> None:
        for bucket, listbox in self.listboxes.items():
            listbox.delete(0, "end")
            self.count_vars[bucket].set("0")

    @staticmethod
    def _format_result(result: LookupResult) -> str:
        return f"{result.number} ({result.reason})" if result.reason else result.number

    # ------------------------------------------------------------------
    def on_close(self) -> None:
        if self.current_task and not self.current_task.done():
            if not messagebox.askyesno("Quit", "Processing is running. Quit anyway?"):
                return
            if self._cancel_event:
                self._cancel_event.set()
        self._executor.shutdown(wait=False, cancel_futures=True)
        close = getattr(self.orchestrator.client, "close", None)
        if callable(close):
            close()
        self.root.destroy()

    # ------------------------------------------------------------------
    def _build_orchestrator(self) -> BatchOrchestrator:
        try:
            settings = load_settings()
        except ConfigurationError as exc:
            messagebox.showwarning("Configuration error", f"Failed to load configuration: {exc}")
            LOGGER.warning("Falling back to the default checker settings")
            settings = CheckerSettings()
        return BatchOrchestrator(
            build_lookup_client(settings),
            store=build_state_store(settings),
            observer=QueueObserver(self.event_queue),
            request_delay=DelayPolicy(settings.request_delay_seconds),
        )


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    root = tk.Tk()
    DncCheckerApp(root)
    root.mainloop()


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
