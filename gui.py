"""
Simple Tkinter GUI for the author contact extractor (.exe friendly).

Workflow:
1) Pick the data source (Europe PMC XML, PubMed TXT, MDPI TXT)
2) Upload the export file (parsed in the background)
3) Browse / filter the rows, switch between all rows and unique emails
4) Export CSV
"""

from __future__ import annotations

import logging
import threading
import traceback
import tkinter as tk
from tkinter import ttk, filedialog, messagebox
from pathlib import Path
from typing import List, Optional

from config_loader import load_settings, resolve_export_dir, save_settings, setup_logging
from export_service import default_export_name, export_csv
from models import DataSourceType, ExtractedRecord, ExtractionError, ParserResult, filter_records
from parsing import parse_file

logger = logging.getLogger(__name__)


# -------------------- GUI CLASS -------------------- #

class ContactExtractorGUI:
    def __init__(self, root: tk.Tk):
        self.root = root
        self.root.title("Author Contact Extractor")
        self.root.geometry("1100x700")

        self.settings = load_settings()
        self.result: Optional[ParserResult] = None
        self.current_file: Optional[Path] = None

        self.source_var = tk.StringVar(value=self.settings.default_source.value)
        self.view_var = tk.StringVar(value="raw")
        self.filter_var = tk.StringVar(value="")
        self.progress_var = tk.StringVar(value="Ready.")

        self._parse_thread: threading.Thread | None = None

        self._build_layout()
        self.filter_var.trace_add("write", lambda *_: self._populate_table())

    # ---------- UI Helpers ---------- #

    def _build_layout(self):
        top = ttk.Frame(self.root, padding=10)
        top.pack(side=tk.TOP, fill=tk.X)

        source_frame = ttk.LabelFrame(top, text="1. Data source", padding=10)
        source_frame.pack(side=tk.LEFT, fill=tk.BOTH, padx=(0, 10))

        for source in DataSourceType:
            ttk.Radiobutton(
                source_frame,
                text=f"{source.label} ({source.description})",
                value=source.value,
                variable=self.source_var,
                command=self.on_source_changed,
            ).pack(anchor="w")

        file_frame = ttk.LabelFrame(top, text="2. Export file", padding=10)
        file_frame.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)

        self.upload_btn = ttk.Button(file_frame, text="Upload export file", command=self.on_upload_file)
        self.upload_btn.pack(anchor="w")

        self.file_label = ttk.Label(file_frame, text="No file loaded yet.", foreground="gray")
        self.file_label.pack(anchor="w", pady=(5, 0))

        self.stats_label = ttk.Label(file_frame, text="", foreground="gray")
        self.stats_label.pack(anchor="w", pady=(5, 0))

        mid = ttk.Frame(self.root, padding=(10, 0))
        mid.pack(side=tk.TOP, fill=tk.X)

        self.raw_btn = ttk.Radiobutton(mid, text="Raw", value="raw", variable=self.view_var,
                                       command=self._populate_table)
        self.raw_btn.pack(side=tk.LEFT)
        self.unique_btn = ttk.Radiobutton(mid, text="Unique Emails", value="unique", variable=self.view_var,
                                          command=self._populate_table)
        self.unique_btn.pack(side=tk.LEFT, padx=(10, 0))

        ttk.Label(mid, text="Filter:").pack(side=tk.LEFT, padx=(20, 5))
        ttk.Entry(mid, textvariable=self.filter_var, width=30).pack(side=tk.LEFT)

        ttk.Button(mid, text="Export CSV", command=self.on_export_csv).pack(side=tk.LEFT, padx=(10, 0))
        ttk.Button(mid, text="Clear", command=self.on_clear).pack(side=tk.LEFT, padx=(10, 0))

        progress_label = ttk.Label(mid, textvariable=self.progress_var, foreground="blue")
        progress_label.pack(side=tk.RIGHT)

        bottom = ttk.Frame(self.root, padding=10)
        bottom.pack(side=tk.TOP, fill=tk.BOTH, expand=True)

        columns = ("title", "author", "email")
        self.tree = ttk.Treeview(bottom, columns=columns, show="headings", selectmode="browse")
        self.tree.heading("title", text="Title")
        self.tree.heading("author", text="Author")
        self.tree.heading("email", text="Author Email")

        self.tree.column("title", width=600, anchor="w")
        self.tree.column("author", width=200, anchor="w")
        self.tree.column("email", width=250, anchor="w")

        vsb = ttk.Scrollbar(bottom, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscrollcommand=vsb.set)

        self.tree.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        vsb.pack(side=tk.RIGHT, fill=tk.Y)

    def _selected_source(self) -> DataSourceType:
        return DataSourceType(self.source_var.get())

    def _active_records(self) -> List[ExtractedRecord]:
        if self.result is None:
            return []
        if self.view_var.get() == "unique":
            return self.result.unique_emails()
        return self.result.records

    def _populate_table(self):
        for row in self.tree.get_children():
            self.tree.delete(row)

        if self.result is None:
            self.stats_label.config(text="")
            return

        self.raw_btn.config(text=f"Raw ({len(self.result.records)})")
        self.unique_btn.config(text=f"Unique Emails ({len(self.result.unique_emails())})")

        for record in filter_records(self._active_records(), self.filter_var.get()):
            title = record.title
            title_display = title[:147] + "..." if len(title) > 150 else title
            self.tree.insert("", "end", iid=record.id, values=(title_display, record.author, record.email))

    # ---------- Handlers ---------- #

    def on_source_changed(self):
        self.settings.default_source = self._selected_source()
        try:
            save_settings(self.settings)
        except OSError as e:
            logger.warning("Could not save settings: %s", e)

    def on_clear(self):
        self.result = None
        self.current_file = None
        self.filter_var.set("")
        self.file_label.config(text="No file loaded yet.")
        self.raw_btn.config(text="Raw")
        self.unique_btn.config(text="Unique Emails")
        self.progress_var.set("Ready.")
        self._populate_table()

    def on_upload_file(self):
        source = self._selected_source()
        ext = source.file_extension
        file_path = filedialog.askopenfilename(
            title=f"Select {source.label} export",
            filetypes=[(f"{ext[1:].upper()} files", f"*{ext}"), ("All files", "*.*")],
        )
        if not file_path:
            return

        # Prevent starting twice
        if self._parse_thread and self._parse_thread.is_alive():
            messagebox.showinfo("Parsing already running", "A file is already being parsed.")
            return

        path = Path(file_path)
        self.upload_btn.config(state=tk.DISABLED)
        self.progress_var.set(f"Parsing {source.label} export…")
        self.root.update_idletasks()

        def worker():
            try:
                result = parse_file(path, source)

                def on_success():
                    self.upload_btn.config(state=tk.NORMAL)
                    if not result.records:
                        self.progress_var.set("Ready.")
                        messagebox.showwarning(
                            "No records found",
                            "No authors with emails found in this file.\n\n"
                            f"Processed {result.total_processed} source records.",
                        )
                        return
                    self.result = result
                    self.current_file = path
                    self.file_label.config(text=f"Loaded: {path.name}")
                    self.stats_label.config(
                        text=f"Source records: {result.total_processed}   "
                             f"Rows: {len(result.records)}   "
                             f"Unique emails: {len(result.unique_emails())}"
                    )
                    self.progress_var.set(f"Extracted {len(result.records)} rows.")
                    self._populate_table()

                self.root.after(0, on_success)

            except (ExtractionError, FileNotFoundError) as e:
                err = str(e)

                def on_fail():
                    self.upload_btn.config(state=tk.NORMAL)
                    self.progress_var.set("Error while parsing.")
                    messagebox.showerror("Error", f"Failed to parse file:\n{err}")

                self.root.after(0, on_fail)

            except Exception as e:
                err = f"{e}\n\n{traceback.format_exc()}"

                def on_crash():
                    self.upload_btn.config(state=tk.NORMAL)
                    self.progress_var.set("Error while parsing.")
                    messagebox.showerror("Error", f"Failed to parse file:\n{err}")

                self.root.after(0, on_crash)

        self._parse_thread = threading.Thread(target=worker, daemon=True)
        self._parse_thread.start()

    def on_export_csv(self):
        records = self._active_records()
        if not records:
            messagebox.showwarning("No data", "No data to export yet.")
            return

        unique = self.view_var.get() == "unique"
        save_path = filedialog.asksaveasfilename(
            title="Save contacts CSV",
            defaultextension=".csv",
            filetypes=[("CSV files", "*.csv"), ("All files", "*.*")],
            initialdir=str(resolve_export_dir(self.settings.export_dir)),
            initialfile=default_export_name(unique),
        )
        if not save_path:
            return

        try:
            export_csv(records, save_path)
            messagebox.showinfo("Export complete", f"Saved {len(records)} rows to:\n{save_path}")
        except OSError as e:
            messagebox.showerror("Error", f"Failed to save CSV:\n{e}")


# -------------------- MAIN -------------------- #

def main():
    setup_logging(load_settings().log_level)
    root = tk.Tk()
    ContactExtractorGUI(root)
    root.mainloop()


if __name__ == "__main__":
    main()
