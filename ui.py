from dataclasses import dataclass

import pygame
import random
import time
from heap import HeapFullError
from settings import *

@dataclass
class Button:
    rect: pygame.Rect
    label: str
    action: str

    def __getitem__(self, key):
        return getattr(self, key)

class UI:
    def __init__(self, screen, heap):
        self.screen = screen
        self.heap = heap
        self.font = pygame.font.SysFont("consolas", 20)
        self.small = pygame.font.SysFont("consolas", 16)

        # кешируемые слои
        self.toolbar_surface = pygame.Surface((WIDTH, PANEL_H), pygame.SRCALPHA)
        self.toolbar_needs_redraw = True
        self.bars_surface = pygame.Surface((WIDTH, HEIGHT), pygame.SRCALPHA)
        self.overlay = pygame.Surface((WIDTH, HEIGHT), pygame.SRCALPHA)

        # snapshot приоритетов, чтобы отслеживать изменения
        self._last_values_snapshot = tuple()

        # состояние извлечения и сортировки
        self.draining = False
        self.drained = []
        self._drain_iter = None
        self.sorted_records = None
        self._next_id = 1

        # состояние UI
        self.buttons = []
        self._build_buttons()

        self.input_active = False
        self.input_text = ""

        self.insert_btn_rect = None
        self._hover_btn = None

        # состояние анимаций
        self.anim_queue = []
        self.current_anim = None

        self.temp_message = None
        self.message_end_time = 0

        # подписка на ивенты кучи
        self.heap.set_observer(self._on_heap_event)

    def _build_buttons(self):
        """Создаёт кнопки тулбара с переносом по ширине панели."""
        labels = [
            ("Insert Rand", "insert_rand"),
            ("Extract Max", "extract_max"),
            ("Stop Drain" if self.draining else "Drain", "drain"),
            ("Heapsort", "heapsort"),
            ("Stats", "show_stats"),
            ("Reset", "reset"),
        ]

        START_X = 20
        START_Y = 12
        PADDING_X = 12
        PADDING_Y = 6
        SPACING = 10

        max_width = max(100, self.toolbar_surface.get_width() - 40)
        _, sample_h = self.font.size("Sample")
        button_height = sample_h + PADDING_Y * 2
        row_height = button_height + 5

        self.buttons = []
        x, y = START_X, START_Y
        for label, action in labels:
            text_w, _ = self.font.size(label)
            width = min(max_width, max(40, text_w + PADDING_X * 2))

            # перенос строки
            if x + width > START_X + max_width and x > START_X:
                x = START_X
                y += row_height

            self.buttons.append(Button(pygame.Rect(x, y, width, button_height), label, action))
            x += width + SPACING

        # Поле ввода располагаем под последней строкой кнопок
        self.input_rect = pygame.Rect(START_X, y + row_height + 10, 160, 28)
        self.toolbar_needs_redraw = True

    def handle_event(self, event):
        if event.type == pygame.MOUSEMOTION:
            new_hover = None
            for btn in self.buttons:
                if btn.rect.collidepoint(event.pos) and self._is_enabled(btn):
                    new_hover = btn
                    break

            if new_hover is not self._hover_btn:
                self._hover_btn = new_hover
                self.toolbar_needs_redraw = True

        elif event.type == pygame.MOUSEBUTTONDOWN and getattr(event, "button", None) == 1:
            # Кнопка Insert
            if self.insert_btn_rect is not None and self.insert_btn_rect.collidepoint(event.pos):
                if self.input_text:
                    self._run_action("insert_input")
                return

            # Поле ввода
            was_active = self.input_active
            self.input_active = bool(self.input_rect.collidepoint(event.pos))
            if self.input_active != was_active:
                self.toolbar_needs_redraw = True

            # Кнопки тулбара
            for btn in self.buttons:
                if btn.rect.collidepoint(event.pos) and self._is_enabled(btn):
                    self._run_action(btn.action)
                    return

        elif event.type == pygame.KEYDOWN:
            if self.input_active:
                self._handle_text_input(event)
            else:
                self._handle_shortcuts(event)

    def _handle_shortcuts(self, event):
        keymap = {
            pygame.K_i: "insert_rand",
            pygame.K_x: "extract_max",
            pygame.K_d: "drain",
            pygame.K_h: "heapsort",
            pygame.K_s: "show_stats",
            pygame.K_r: "reset",
        }
        action = keymap.get(event.key)
        if action:
            btn = next((b for b in self.buttons if b.action == action), None)
            if btn is None or self._is_enabled(btn):
                self._run_action(action)

    def _handle_text_input(self, event):
        if event.key == pygame.K_RETURN:
            if self.input_text:
                self._run_action("insert_input")
        elif event.key == pygame.K_BACKSPACE:
            self.input_text = self.input_text[:-1]
        elif event.key == pygame.K_ESCAPE:
            self.input_active = False
        else:
            ch = event.unicode
            if (ch.isdigit() or (ch == "-" and not self.input_text)) and len(self.input_text) < 6:
                self.input_text += ch

        self.toolbar_needs_redraw = True

    def _run_action(self, action: str):
        """Безопасно выполняет действие тулбара по строковому идентификатору."""
        handlers = {
            "insert_rand": self._run_insert_rand,
            "insert_input": self._insert_from_input,
            "extract_max": self._run_extract_max,
            "drain": self._run_drain,
            "heapsort": self._run_heapsort,
            "show_stats": self._show_stats,
            "reset": self._run_reset,
        }
        handler = handlers.get(action)
        if handler is None:
            self._show_temp_message(f"Unknown action: {action}")
            return

        # после heapsort хранилище уже не куча
        if self.sorted_records is not None and action not in ("reset", "show_stats"):
            self._show_temp_message("Heap is sorted. Press Reset to use the queue again")
            self.input_text = ""
            self.toolbar_needs_redraw = True
            return

        try:
            handler()
        except HeapFullError as e:
            self._show_temp_message(str(e))
        except Exception as e:
            # Не валим всё приложение из-за падения внутри обработчика
            self._show_temp_message(f"Action '{action}' failed: {e}")

        self._build_buttons()

    def _new_element(self) -> str:
        element = f"#{self._next_id}"
        self._next_id += 1
        return element

    def _run_insert_rand(self):
        self.heap.insert(random.randint(PRIORITY_MIN, PRIORITY_MAX), self._new_element())

    def _insert_from_input(self):
        try:
            v = int(self.input_text)
        except ValueError:
            v = None
        self.input_text = ""
        self.input_active = False
        if v is not None:
            v = max(PRIORITY_MIN, min(PRIORITY_MAX, v))
            self.heap.insert(v, self._new_element())

    def _run_extract_max(self):
        element = self.heap.extract_max()
        if element is None:
            self._show_temp_message("Heap is empty")
        else:
            self._show_temp_message(f"Extracted {element}")

    def _run_drain(self):
        """Запускает/останавливает пошаговое извлечение всех записей"""
        if self.draining:
            self.draining = False
            self._drain_iter = None
            self._show_temp_message("Drain stopped")
        else:
            self.draining = True
            self.drained = []
            self._drain_iter = self.heap.drain()
            self._show_temp_message("Drain started - click again to stop")

    def _run_heapsort(self):
        """Сортирует хранилище кучи на месте и показывает результат"""
        self.draining = False
        self._drain_iter = None
        storage = self.heap.sort()
        self.sorted_records = [r for r in storage[1:] if r is not None]
        self.anim_queue.clear()
        self.current_anim = None
        self._show_temp_message(
            f"Sorted ascending: {[r.priority for r in self.sorted_records]}"
        )

    def _run_reset(self):
        self.heap.clear()
        self.draining = False
        self._drain_iter = None
        self.drained = []
        self.sorted_records = None
        self.anim_queue.clear()
        self.current_anim = None

    def _show_stats(self):
        """Показывает статистику кучи"""
        stats = self.heap.get_stats()
        messages = [
            f"Count: {stats['count']} / {stats['capacity']}",
            f"Depth: {stats['depth']}",
            f"Valid: {stats['is_valid']}",
            f"Sorted: {stats['is_sorted']}",
            f"Operations: {stats['operations_count']}",
        ]
        # верхние уровни дерева приоритетов
        messages.extend(self.heap.to_tree_repr(max_depth=3))
        self._show_temp_message("\n".join(messages))

    def _show_temp_message(self, message: str, duration: float = 3.0):
        """Показывает временное сообщение"""
        self.temp_message = message
        self.message_end_time = time.perf_counter() + duration

    def _is_enabled(self, btn) -> bool:
        if self.sorted_records is not None:
            return btn["action"] in ("reset", "show_stats")
        if btn["action"] == "insert_rand" and self.heap.is_full():
            return False
        if btn["action"] in ("extract_max", "heapsort") and self.heap.is_empty():
            return False
        if btn["action"] == "drain" and self.heap.is_empty() and not self.draining:
            return False
        return True

    def _on_heap_event(self, event: str, payload: dict):
        mapping = {
            "swap": (ANIM_SWAP_MS, "swap"),
            "insert": (ANIM_APPEAR_MS, "appear"),
        }
        if event not in mapping:
            return

        ms, visual_type = mapping[event]
        self.anim_queue.append({
            "type": visual_type,
            "dur": ms / 1000.0,
            "payload": payload.copy(),
        })

    def _current_values(self):
        if self.sorted_records is not None:
            return [r.priority for r in self.sorted_records]
        return self.heap.priorities()

    def draw(self):
        """Рендер кадра + пошаговое извлечение и временные сообщения."""

        # --- Пошаговое извлечение ---
        if self.draining and not self.anim_queue and not self.current_anim:
            try:
                element = next(self._drain_iter)
                self.drained.append(element)
            except StopIteration:
                self.draining = False
                self._drain_iter = None
                self._show_temp_message(f"Drain complete! Extracted: {self.drained}")
                self._build_buttons()
            except Exception as drain_err:
                self.draining = False
                self._drain_iter = None
                self._show_temp_message(f"Error during drain: {drain_err}")
                self._build_buttons()

        if self.toolbar_needs_redraw:
            self._redraw_toolbar()

        self._redraw_bars_if_needed()

        self.screen.blit(self.bars_surface, (0, 0))
        self.screen.blit(self.toolbar_surface, (0, 0))

        # --- Текст/оверлеи ---
        for fn in (self._draw_info_text, self._draw_temp_message, self._draw_drain_progress):
            try:
                fn()
            except Exception as draw_err:
                # не даём одному тексту/оверлею уронить весь кадр
                if fn != self._draw_temp_message:
                    self._show_temp_message(f"{fn.__name__} error: {draw_err}")

    def _draw_temp_message(self):
        if self.temp_message and time.perf_counter() < self.message_end_time:
            lines = self.temp_message.split('\n')
            y = HEIGHT - 150 - 25 * (len(lines) - 1)

            max_width = max(self.font.size(line)[0] for line in lines)
            bg_rect = pygame.Rect(20, y - 5, min(WIDTH - 40, max_width + 20), len(lines) * 25 + 10)
            pygame.draw.rect(self.screen, (40, 40, 60), bg_rect, border_radius=5)
            pygame.draw.rect(self.screen, (100, 100, 150), bg_rect, 2, border_radius=5)

            for line in lines:
                text = self.font.render(line, True, (220, 220, 100))
                self.screen.blit(text, (30, y))
                y += 25

    def _draw_drain_progress(self):
        if not self.draining:
            return
        total = len(self.drained) + len(self.heap)
        progress = len(self.drained) / total if total else 0
        text = self.font.render(f"Draining... {len(self.drained)} extracted", True, (255, 200, 100))
        self.screen.blit(text, (WIDTH - 300, HEIGHT - 100))

        bar_rect = pygame.Rect(WIDTH - 300, HEIGHT - 70, 280, 20)
        pygame.draw.rect(self.screen, (60, 60, 80), bar_rect, border_radius=3)
        fill_width = int(280 * progress)
        if fill_width > 0:
            fill_rect = pygame.Rect(bar_rect.x, bar_rect.y, fill_width, 20)
            pygame.draw.rect(self.screen, (100, 200, 100), fill_rect, border_radius=3)

    def _redraw_toolbar(self):
        surf = self.toolbar_surface
        surf.fill(PANEL_BG)

        for btn in self.buttons:
            rect = btn.rect
            if not self._is_enabled(btn):
                bg = BTN_BG_DISABLED
            elif self._hover_btn is btn:
                bg = BTN_BG_HOVER
            else:
                bg = BTN_BG

            pygame.draw.rect(surf, bg, rect, border_radius=6)
            label_surf = self.font.render(btn.label, True, TEXT_COLOR)
            text_x = rect.x + (rect.width - label_surf.get_width()) // 2
            text_y = rect.y + (rect.height - label_surf.get_height()) // 2
            surf.blit(label_surf, (text_x, text_y))

        # поле ввода
        pygame.draw.rect(
            surf,
            (160, 160, 160) if self.input_active else INPUT_BG,
            self.input_rect,
            border_radius=6,
        )

        placeholder = self.input_text or "Type priority…"
        ph_color = (200, 200, 200) if self.input_text else (130, 130, 150)
        txt = self.small.render(placeholder, True, ph_color)
        text_y = self.input_rect.y + (self.input_rect.height - txt.get_height()) // 2
        surf.blit(txt, (self.input_rect.x + 8, text_y))

        # кнопка Insert рядом с инпутом
        self.insert_btn_rect = pygame.Rect(
            self.input_rect.right + 8,
            self.input_rect.y,
            90,
            self.input_rect.height,
        )
        can_insert = bool(self.input_text) and self.sorted_records is None and not self.heap.is_full()
        pygame.draw.rect(surf, BTN_BG if can_insert else BTN_BG_DISABLED, self.insert_btn_rect, border_radius=6)
        label = self.font.render("Insert", True, TEXT_COLOR)
        label_x = self.insert_btn_rect.x + (self.insert_btn_rect.width - label.get_width()) // 2
        label_y = self.insert_btn_rect.y + (self.insert_btn_rect.height - label.get_height()) // 2
        surf.blit(label, (label_x, label_y))

        self.toolbar_needs_redraw = False

    def _redraw_bars_if_needed(self):
        values = self._current_values()
        values_snapshot = tuple(values)

        before_anim = self.current_anim
        self._advance_animation()

        anim_active = bool(self.current_anim or self.anim_queue)
        heap_changed = values_snapshot != self._last_values_snapshot

        if not values or heap_changed or anim_active or before_anim is not self.current_anim:
            self._draw_bars_surface(values)

        self._last_values_snapshot = values_snapshot

    def _bar_geometry(self, values):
        top = PANEL_H + 60
        available_h = HEIGHT - top - 170
        vmax_abs = max(abs(v) for v in values) or 1
        bar_width = max(16, (WIDTH - 20) // max(10, self.heap.capacity))

        if min(values) < 0:
            base_y = top + available_h // 2
            half = available_h // 2
        else:
            base_y = top + available_h
            half = available_h
        return bar_width, base_y, half / vmax_abs

    def _draw_bars_surface(self, values):
        surf = self.bars_surface
        surf.fill((0, 0, 0, 0))

        if not values:
            msg = self.font.render(
                "Heap is empty. Use Insert or type a priority ↑",
                True,
                (180, 180, 200),
            )
            surf.blit(
                msg,
                (WIDTH // 2 - msg.get_width() // 2,
                 HEIGHT // 2 - msg.get_height() // 2),
            )
            return

        bar_width, base_y, scale = self._bar_geometry(values)
        self.overlay.fill((0, 0, 0, 0))

        # позиции 1-индексные, как в хранилище кучи
        exclude = set()
        if self.current_anim:
            p = self.current_anim["payload"]
            exclude = {p.get("i"), p.get("j"), p.get("index")} - {None}

        color = SORTED_COLOR if self.sorted_records is not None else BAR_COLOR
        for pos, val in enumerate(values, start=1):
            if pos in exclude:
                continue
            self._draw_bar(surf, pos, val, color, 255, bar_width, base_y, scale)

        pygame.draw.line(surf, (90, 90, 110), (10, base_y), (WIDTH - 10, base_y), 1)

        if self.current_anim:
            self._draw_active_overlay(bar_width, base_y, scale)
            surf.blit(self.overlay, (0, 0))

    def _draw_bar(self, surf, pos, val, color, alpha, bar_width, base_y, scale):
        x = (pos - 1) * bar_width + 10
        height = max(1, int(abs(val) * scale))
        y = base_y - height if val >= 0 else base_y
        pygame.draw.rect(surf, (*color, alpha), pygame.Rect(int(x), y, bar_width - 4, height))

        label = self.small.render(str(val), True, TEXT_COLOR)
        label_y = base_y + 6 if val >= 0 else base_y - label.get_height() - 6
        surf.blit(label, (int(x) + (bar_width - label.get_width()) // 2, label_y))

    def _draw_active_overlay(self, bar_width, base_y, scale):
        t = self.current_anim
        p = t["payload"]
        progress = self._anim_progress(t)

        if t["type"] == "swap":
            # после обмена pi лежит в i, pj — в j: ведём их из старых позиций
            i, j = p["i"], p["j"]
            self._draw_bar(self.overlay, j + (i - j) * progress, p["pi"], SWAP_COLOR,
                           GHOST_ALPHA, bar_width, base_y, scale)
            self._draw_bar(self.overlay, i + (j - i) * progress, p["pj"], SWAP_COLOR,
                           GHOST_ALPHA, bar_width, base_y, scale)

        elif t["type"] == "appear":
            self._draw_bar(self.overlay, p["index"], p["priority"], APPEAR_COLOR,
                           int(GHOST_ALPHA * progress), bar_width, base_y, scale)

    def _advance_animation(self):
        now = time.perf_counter()

        if not self.current_anim and self.anim_queue:
            item = self.anim_queue.pop(0)
            item["t0"] = now
            self.current_anim = item
            return

        if self.current_anim and self._anim_progress(self.current_anim) >= 1.0:
            self.current_anim = None

    @staticmethod
    def _anim_progress(anim):
        span = anim["dur"]
        if span <= 0:
            return 1.0
        return min(1.0, (time.perf_counter() - anim["t0"]) / span)

    def _draw_info_text(self):
        info_lines = [
            "[I] InsertRand  [X] ExtractMax  [D] Drain",
            "[H] Heapsort  [S] Stats  [R] Reset",
        ]

        y_pos = HEIGHT - 70
        for line in info_lines:
            info = self.font.render(line, True, TEXT_COLOR)
            self.screen.blit(info, (20, y_pos))
            y_pos += 25

        fill = self.font.render(f"{len(self.heap)}/{self.heap.capacity}", True, TEXT_COLOR)
        self.screen.blit(fill, (WIDTH - 120, HEIGHT - 45))

        status_ok = self.heap.is_valid_heap()
        status_text = "HEAP OK" if status_ok else "HEAP BROKEN"
        if self.sorted_records is not None:
            status_text = "SORTED"
        status_color = ACCENT_OK if status_ok else ACCENT_BAD
        status = self.font.render(status_text, True, status_color)
        self.screen.blit(status, (WIDTH - 260, HEIGHT - 45))
