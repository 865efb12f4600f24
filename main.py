"""
main.py — точка входа визуализатора ограниченной max-кучи.

Модуль инициализирует Pygame-окно, создаёт BinaryMaxHeap фиксированной
ёмкости и UI, и запускает основной цикл отрисовки и обработки событий.
"""

import os
import sys
import traceback
import pygame
from settings import *
from ui import UI
from heap import BinaryMaxHeap

MAX_CONSECUTIVE_ERRORS = 5  # после 5 подряд ошибок отрисовки — аварийный выход


def run_loop(screen, ui):
    """
    Главный цикл: события, отрисовка, ограничение FPS.

    Ошибка в обработке одного события не останавливает цикл; ошибки
    отрисовки считаются подряд и после MAX_CONSECUTIVE_ERRORS цикл
    завершается.
    """
    clock = pygame.time.Clock()
    running = True
    consecutive_errors = 0

    while running:
        try:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                    continue
                try:
                    ui.handle_event(event)
                except Exception as event_error:
                    print(f"\n[WARN] Ошибка при обработке события: {event_error}")
                    traceback.print_exc()

            # --- Отрисовка ---
            try:
                screen.fill(BG_COLOR)
                ui.draw()
                pygame.display.flip()
            except pygame.error as pg_err:
                # Обычно это уже серьёзно (потеря контекста, проблемное окно)
                print(f"\n[ERROR] Ошибка Pygame при отрисовке: {pg_err}")
                traceback.print_exc()
                running = False
                continue
            except Exception as draw_err:
                print(f"\n[ERROR] Ошибка в отрисовке кадра: {draw_err}")
                traceback.print_exc()
                consecutive_errors += 1
                if consecutive_errors >= MAX_CONSECUTIVE_ERRORS:
                    print(f"[FATAL] Слишком много подряд ошибок отрисовки ({consecutive_errors}), выходим.")
                    running = False
                continue
            else:
                consecutive_errors = 0

            clock.tick(FPS)

        except KeyboardInterrupt:
            print("\n[INFO] Остановка по Ctrl+C")
            running = False


def main():
    """
    Точка входа приложения.

    Основные задачи:
        1. Настроить SDL для корректной работы в HiDPI-режиме.
        2. Инициализировать Pygame и окно визуализации.
        3. Создать BinaryMaxHeap (модель данных) и UI (интерфейс).
        4. Запустить главный цикл приложения.

    Исключения:
        Любые непойманные исключения логируются в консоль с трассировкой.
    """
    try:
        # --- Retina / HiDPI Fix (macOS + SDL2) ---
        os.environ["SDL_VIDEO_ALLOW_HIGHDPI"] = "1"
        os.environ.pop("SDL_VIDEO_HIGHDPI_DISABLED", None)

        pygame.init()
        print(" Pygame успешно инициализирован.")

        try:
            screen = pygame.display.set_mode(
                (WIDTH, HEIGHT),
                pygame.HWSURFACE | pygame.DOUBLEBUF | pygame.RESIZABLE
            )
            pygame.display.set_caption("Bounded Max-Heap Visualizer")
        except pygame.error as e:
            print(f" Ошибка при создании окна: {e}")
            sys.exit(1)

        heap = BinaryMaxHeap(capacity=HEAP_CAPACITY)
        ui = UI(screen, heap)
        print(f" Куча создана: capacity={heap.capacity}")

        run_loop(screen, ui)

    except KeyboardInterrupt:
        print("\n Завершение по Ctrl+C")

    except Exception as e:
        print(f"\n Критическая ошибка при запуске: {e}")
        traceback.print_exc()

    finally:
        # Гарантированное завершение Pygame
        pygame.quit()
        print(" Приложение завершено.")


if __name__ == "__main__":
    main()
