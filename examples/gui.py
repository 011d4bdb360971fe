# examples/gui.py
from __future__ import annotations

import logging
import queue
import threading
import tkinter as tk
from tkinter import ttk, messagebox, filedialog

import numpy as np

from alpha3d.config import ConfigManager
from alpha3d.errors import Alpha3DError, BuildCancelled
from alpha3d.io import load_csv, normalize_points, parse_points
from alpha3d.pipeline import alpha_shape
from alpha3d.shape import Mode

import matplotlib
matplotlib.use("TkAgg")
from matplotlib.figure import Figure
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg
from mpl_toolkits.mplot3d import Axes3D  # noqa: F401  # потрібен для 'projection="3d"'
from mpl_toolkits.mplot3d.art3d import Poly3DCollection

class AlphaApp(tk.Tk):
    """
    Переглядач альфа-форми: тріангуляція один раз (у фоновому потоці,
    з можливістю скасувати), далі повзунок α — лише дешеві запити.
    """
    def __init__(self, config: ConfigManager):
        super().__init__()
        self.title("Alpha shape 3D")
        self.geometry("900x750")
        self.config_manager = config

        self.shape = None
        self._cancel: threading.Event | None = None
        self._results: queue.Queue = queue.Queue()

        # сюди покладемо Figure/Canvas
        self.fig = None
        self.ax = None
        self.canvas = None

        self._build_widgets()

    def _build_widgets(self):
        main = ttk.Frame(self, padding=10)
        main.pack(fill="both", expand=True)

        # --- Режим вводу ---
        mode_frame = ttk.LabelFrame(main, text="Режим вводу точок")
        mode_frame.pack(fill="x", pady=5)

        self.input_mode = tk.StringVar(value="random")
        for col, (text, value) in enumerate([
            ("Випадкові точки в кулі", "random"),
            ("Ручне введення точок", "manual"),
            ("CSV-файл", "csv"),
        ]):
            ttk.Radiobutton(
                mode_frame, text=text, variable=self.input_mode, value=value,
                command=self._update_mode_state,
            ).grid(row=0, column=col, sticky="w", padx=5, pady=2)

        ttk.Label(mode_frame, text="Кількість точок:").grid(row=1, column=0, sticky="w", padx=5, pady=5)
        self.n_entry = ttk.Entry(mode_frame, width=10)
        self.n_entry.insert(0, str(self.config_manager.get("viewer.random_points", 200)))
        self.n_entry.grid(row=1, column=1, sticky="w", padx=5, pady=5)

        self.csv_path = tk.StringVar(value="")
        self.csv_btn = ttk.Button(mode_frame, text="Обрати CSV...", command=self._choose_csv)
        self.csv_btn.grid(row=1, column=2, sticky="w", padx=5, pady=5)
        ttk.Label(mode_frame, textvariable=self.csv_path).grid(row=1, column=3, sticky="w", padx=5)

        self.points_text = tk.Text(main, height=5, wrap="none")
        self.points_text.pack(fill="x", padx=5, pady=5)
        self.points_text.insert("1.0", "# x y z на рядок\n")

        # --- Кнопки ---
        btns = ttk.Frame(main)
        btns.pack(fill="x", pady=5)
        self.run_btn = ttk.Button(btns, text="Побудувати", command=self.run_pipeline)
        self.run_btn.pack(side="left", fill="x", expand=True)
        self.cancel_btn = ttk.Button(btns, text="Скасувати", command=self.cancel_build, state="disabled")
        self.cancel_btn.pack(side="left", padx=5)

        # --- Повзунок α ---
        lo = float(self.config_manager.get("viewer.alpha_min", 0.001))
        hi = float(self.config_manager.get("viewer.alpha_max", 0.2))
        start = min(max(float(self.config_manager.get("alpha.default", 0.05)), lo), hi)
        alpha_frame = ttk.LabelFrame(main, text="α (радіус)")
        alpha_frame.pack(fill="x", pady=5)
        self.alpha_var = tk.DoubleVar(value=start)
        self.alpha_scale = ttk.Scale(
            alpha_frame, from_=lo, to=hi, variable=self.alpha_var,
            command=lambda _v: self.update_plot(),
        )
        self.alpha_scale.pack(fill="x", padx=5, pady=2)

        # --- Результати ---
        self.status_var = tk.StringVar(value="—")
        ttk.Label(main, textvariable=self.status_var).pack(fill="x", pady=2)

        # --- Фрейм для 3D-графіка ---
        plot_frame = ttk.LabelFrame(main, text="3D візуалізація")
        plot_frame.pack(fill="both", expand=True, pady=5)

        self.fig = Figure(figsize=(5, 4))
        self.ax = self.fig.add_subplot(111, projection="3d")
        self.canvas = FigureCanvasTkAgg(self.fig, master=plot_frame)
        self.canvas.draw()
        self.canvas.get_tk_widget().pack(fill="both", expand=True)

        self._update_mode_state()

    def _update_mode_state(self):
        mode = self.input_mode.get()
        self.n_entry.configure(state="normal" if mode == "random" else "disabled")
        self.csv_btn.configure(state="normal" if mode == "csv" else "disabled")

    def _choose_csv(self):
        path = filedialog.askopenfilename(filetypes=[("CSV", "*.csv"), ("All files", "*")])
        if path:
            self.csv_path.set(path)

    def _read_points(self) -> np.ndarray:
        mode = self.input_mode.get()
        if mode == "random":
            n = int(self.n_entry.get())
            if n < 4:
                raise ValueError("Кількість точок має бути щонайменше 4.")
            pts = np.random.default_rng().normal(size=(n, 3))
            return pts / np.linalg.norm(pts, axis=1, keepdims=True)
        if mode == "csv":
            if not self.csv_path.get():
                raise ValueError("Оберіть CSV-файл.")
            return load_csv(self.csv_path.get())
        return parse_points(self.points_text.get("1.0", "end"))

    # ---------- побудова ----------
    def run_pipeline(self):
        try:
            points = normalize_points(self._read_points())
        except (OSError, ValueError) as e:
            messagebox.showerror("Помилка вводу точок", str(e))
            return

        self._cancel = threading.Event()
        self.run_btn.configure(state="disabled")
        self.cancel_btn.configure(state="normal")
        self.status_var.set(f"Тріангуляція {len(points)} точок...")

        def work(cancel: threading.Event):
            try:
                shape = alpha_shape(points, config=self.config_manager, mode=Mode.GENERAL.value, cancel=cancel)
                self._results.put(("ok", shape))
            except (Alpha3DError, ValueError) as e:
                self._results.put(("error", e))

        threading.Thread(target=work, args=(self._cancel,), daemon=True).start()
        self.after(100, self._poll_build)

    def cancel_build(self):
        if self._cancel is not None:
            self._cancel.set()

    def _poll_build(self):
        try:
            status, payload = self._results.get_nowait()
        except queue.Empty:
            self.after(100, self._poll_build)
            return

        self.run_btn.configure(state="normal")
        self.cancel_btn.configure(state="disabled")
        self._cancel = None
        if status == "error":
            if isinstance(payload, BuildCancelled):
                self.status_var.set("Скасовано")
            else:
                messagebox.showerror("Помилка тріангуляції", str(payload))
            return
        self.shape = payload
        self.update_plot()

    # ---------- рендер ----------
    def update_plot(self):
        """
        Перемалювати межу для поточного α. При поганому α лишаємо попередній
        малюнок і показуємо помилку в рядку статусу.
        """
        if self.shape is None:
            return
        alpha = self.alpha_var.get()
        result = self.shape.query(alpha)
        if not result.ok:
            self.status_var.set(f"α={alpha!r}: {result.error}")
            return

        self.ax.clear()
        pts = self.shape.points
        singles = pts[result.vertices]
        if len(singles):
            self.ax.scatter(singles[:, 0], singles[:, 1], singles[:, 2], s=2, color="k")
        if len(result.triangles):
            self.ax.add_collection3d(Poly3DCollection(
                result.triangles, facecolor="tab:orange", edgecolor="k", linewidths=0.2, alpha=0.8,
            ))

        # однакові масштаби (точки нормалізовані в [-0.5, 0.5]^3)
        for setter in (self.ax.set_xlim, self.ax.set_ylim, self.ax.set_zlim):
            setter(-0.5, 0.5)
        self.ax.set_xlabel("X")
        self.ax.set_ylabel("Y")
        self.ax.set_zlabel("Z")
        self.ax.set_title(f"α = {alpha:.4f}")
        self.canvas.draw()

        c = result.counts
        self.status_var.set(f"Граней: {c['facets']}   Ребер: {c['edges']}   Вершин: {c['vertices']}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app = AlphaApp(ConfigManager())
    app.mainloop()
