from typing import List, Optional, Any, Callable, Iterator, TypeVar, Generic, Dict, Sequence, Union, Tuple
from contextlib import contextmanager
from dataclasses import dataclass
import logging
import math

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1023


class HeapFullError(OverflowError):
    """Вставка в кучу, уже заполненную до capacity."""


@dataclass
class Record(Generic[T]):
    """Запись очереди: числовой приоритет и непрозрачный payload."""
    priority: float
    element: T


class BinaryMaxHeap(Generic[T]):
    """
    Ограниченная по ёмкости очередь с приоритетом на бинарной max-куче.

    Возможности:
        - insert / extract_max за O(log n), count за O(1).
        - Построение из готового 1-индексного массива за O(n).
        - Сортировка кучи "на месте" (heapsort) по возрастанию приоритета.
        - Observer-колбэк для визуализации событий и отладки.
        - Защита от реэнтрантных изменений структуры (mutations).

    Примечания:
        - Хранилище 1-индексное: слот 0 — неиспользуемый sentinel (None),
          parent(i) = i // 2, left(i) = 2i, right(i) = 2i + 1.
        - Элементы (element) никогда не сравниваются, порядок задаётся
          только полем priority.
        - Порядок записей с равным приоритетом не определён.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        observer: Optional[Callable[[str, dict], None]] = None,
        verify_sample_rate: int = 0,
    ):
        """
        Создаёт пустую кучу фиксированной ёмкости.

        Args:
            capacity: Максимальное число записей. Куча никогда не растёт.
            observer: Колбэк наблюдателя: (event: str, payload: dict) -> None.
            verify_sample_rate: Частота проверок инварианта (0 — без проверок).
        """
        self._capacity = capacity
        self._storage: List[Optional[Record[T]]] = [None] * (capacity + 1)
        self._count = 0
        self._sorted = False
        self._observer = observer
        self._mutating = False
        self._ops = 0
        self._verify_sr = max(0, verify_sample_rate)

    @classmethod
    def from_array(
        cls,
        records: List[Any],
        observer: Optional[Callable[[str, dict], None]] = None,
        verify_sample_rate: int = 0,
    ) -> "BinaryMaxHeap[T]":
        """
        Строит кучу поверх существующего 1-индексного массива записей.

        Массив НЕ копируется: куча забирает его себе в качестве хранилища,
        вызывающий код не должен менять его дальше самостоятельно.

        Args:
            records: Список, где records[0] игнорируется (sentinel), а
                     records[1:] — Record или пары (priority, element).
                     Пары заменяются на Record прямо в этом же списке.
            observer: Колбэк наблюдателя.
            verify_sample_rate: Частота проверок инварианта.

        Returns:
            Куча с capacity == count == len(records) - 1.
        """
        heap = cls(capacity=0, observer=observer, verify_sample_rate=verify_sample_rate)
        for i in range(1, len(records)):
            records[i] = _as_record(records[i])

        heap._storage = records
        heap._capacity = heap._count = max(0, len(records) - 1)
        heap._build_heap()
        return heap

    @staticmethod
    def heapsort(records: List[Any]) -> List[Any]:
        """
        Сортирует 1-индексный массив записей по возрастанию приоритета
        "на месте" за O(n log n).

        Returns:
            Тот же самый объект списка (records), уже отсортированный.
        """
        heap = BinaryMaxHeap.from_array(records)
        return heap.sort()

    # ---------- PUBLIC API ----------

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def sorted(self) -> bool:
        """True после sort(): хранилище больше не является кучей."""
        return self._sorted

    def insert(self, priority: float, element: T) -> None:
        """
        Добавляет запись в кучу (вставка в конец с последующим подъёмом).

        Args:
            priority: Приоритет записи. Допустимо любое число.
            element: Произвольные данные записи.

        Raises:
            HeapFullError: Если куча уже содержит capacity записей.
        """
        if self._count >= self._capacity:
            logger.debug("insert rejected: heap is full (capacity=%d)", self._capacity)
            self._notify("full", capacity=self._capacity, priority=priority)
            raise HeapFullError(f"Heap is already full (capacity={self._capacity})")

        with self._mutation("insert"):
            self._count += 1
            self._storage[self._count] = Record(priority, element)
            self._notify("insert", index=self._count, priority=priority, element=element)
            self._float(self._count)

    def extract_max(self, default: Optional[T] = None) -> Optional[T]:
        """
        Извлекает и возвращает элемент записи с наибольшим приоритетом.

        Args:
            default: Значение, возвращаемое при пустой куче.

        Returns:
            Элемент корневой записи или default, если куча пуста.
            Пустая куча — штатная ситуация, исключение не бросается.
        """
        if not self._count:
            self._notify("extract_empty")
            return default

        with self._mutation("extract_max"):
            if self._count > 1:
                self._swap(1, self._count)

            record = self._storage[self._count]
            self._storage[self._count] = None
            self._count -= 1
            self._sink(1)

            self._notify("extract", priority=record.priority, element=record.element, count=self._count)
            return record.element

    def count(self) -> int:
        """Количество записей, находящихся в куче."""
        return self._count

    def sort(self) -> List[Optional[Record[T]]]:
        """
        Превращает кучу в отсортированный по возрастанию приоритета массив.

        Разрушающая операция: после неё count() == 0, и insert, extract_max
        и т.п. больше НЕ работают как очередь (до вызова clear()).

        Returns:
            Хранилище кучи. Массив 1-индексный, первый элемент — None.
        """
        with self._mutation("sort"):
            n = self._count
            while self._count > 0:
                self._swap(1, self._count)
                self._count -= 1
                self._sink(1)

            self._sorted = True
            logger.debug("sort finished: %d records", n)
            self._notify("sort_done", size=n)
        return self._storage

    def peek_max(self, default: Optional[T] = None) -> Optional[T]:
        """
        Возвращает элемент корневой записи, не удаляя его.

        Returns:
            Элемент с наибольшим приоритетом или default, если куча пуста.
        """
        return self._storage[1].element if self._count else default

    def drain(self) -> Iterator[T]:
        """
        Итератор, который возвращает элементы по убыванию приоритета,
        извлекая их из кучи (разрушающая операция).
        """
        while self._count:
            yield self.extract_max()

    def clear(self) -> None:
        """
        Полностью очищает кучу, сохраняя её ёмкость.

        Примечания:
            - После sort() возвращает структуру в рабочее состояние очереди.
            - Отправляет событие 'clear' с количеством очищенных записей.
        """
        with self._mutation("clear"):
            cleared = self._count
            self._storage = [None] * (self._capacity + 1)
            self._count = 0
            self._sorted = False
            self._notify("clear", cleared=cleared)

    def records(self) -> List[Record[T]]:
        """
        Возвращает копию живых записей storage[1..count] в порядке кучи.
        """
        return list(self._storage[1:self._count + 1])

    def priorities(self) -> List[float]:
        return [r.priority for r in self._storage[1:self._count + 1]]

    def is_empty(self) -> bool:
        return not self._count

    def is_full(self) -> bool:
        return self._count >= self._capacity

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        """
        Возвращает человекочитаемое представление кучи.

        Returns:
            Строка вида "<BinaryMaxHeap 3/10 [9, 5, 1]>".
        """
        return f"<BinaryMaxHeap {self._count}/{self._capacity} {self.priorities()}>"

    # ---------- INTERNALS ----------

    @contextmanager
    def _mutation(self, opname: str):
        """
        Контекстный менеджер для безопасных мутаций структуры.

        Args:
            opname: Имя операции (для сообщений об ошибках).

        Raises:
            RuntimeError: При попытке реэнтрантного изменения кучи.
            AssertionError: Если включена проверка и инвариант нарушен.
        """
        if self._mutating:
            raise RuntimeError(f"Re-entrant heap mutation in '{opname}'")

        self._mutating = True
        try:
            yield
        finally:
            self._mutating = False
            self._ops += 1

        self._maybe_verify()

    def _maybe_verify(self):
        """
        По необходимости проверяет инвариант кучи по счётчику операций.

        Примечания:
            - Активируется, если verify_sample_rate > 0 и номер операции кратен
              заданной частоте. В противном случае ничего не делает.
        """
        if self._verify_sr and (self._ops % self._verify_sr == 0):
            assert self.is_valid_heap(), "Heap invariant broken"

    # ---------- NOTIFICATIONS ----------

    def set_observer(self, fn: Optional[Callable[[str, Dict[str, Any]], None]]) -> None:
        """
        Устанавливает или снимает observer-колбэк.

        Args:
            fn: Функция-обработчик событий или None, чтобы отключить.
        """
        self._observer = fn

    def _notify(self, event: str, **payload: Any) -> None:
        """
        Безопасно вызывает observer, передавая событие и компактный payload.

        Примечания:
            - Значения длиной > 200 символов сокращаются в строковом виде.
            - Исключения в observer подавляются и логируются на уровне debug.
        """
        observer = self._observer
        if not observer:
            return

        def _compact(v: Any) -> Any:
            s = repr(v)
            return s[:200] + "…" if len(s) > 200 else v

        compact_payload = {k: _compact(v) for k, v in payload.items()}

        try:
            observer(event, compact_payload)
        except Exception as e:
            logger.debug("Observer callback failed for event '%s': %s", event, e, exc_info=True)

    # ---------- HEAP OPERATIONS ----------

    def _build_heap(self) -> None:
        """Устанавливает инвариант над всем массивом: спуск внутренних узлов снизу вверх."""
        with self._mutation("build_heap"):
            for i in range(self._count // 2, 0, -1):
                self._sink(i)
            self._notify("heapify_done", size=self._count)

    def _float(self, index: int) -> None:
        """
        Поднимает запись вверх, пока приоритет родителя строго меньше.

        Args:
            index: Индекс поднимаемой записи.
        """
        storage = self._storage
        while index > 1:
            parent = index // 2
            if storage[parent].priority < storage[index].priority:
                self._swap(index, parent)
                index = parent
            else:
                break

    def _sink(self, index: int) -> None:
        """
        Опускает запись вниз, пока какой-либо потомок строго больше.

        Рассматриваются только потомки в пределах count. Из двух потомков
        выбирается больший, при равенстве — левый.

        Args:
            index: Индекс опускаемой записи.
        """
        storage = self._storage
        n = self._count
        while True:
            left = 2 * index
            right = left + 1
            best = index

            if left <= n and storage[left].priority > storage[best].priority:
                best = left
            if right <= n and storage[right].priority > storage[best].priority:
                best = right

            if best == index:
                break

            self._swap(index, best)
            index = best

    def _swap(self, i: int, j: int) -> None:
        """
        Меняет местами записи с индексами i и j и уведомляет observer.
        """
        storage = self._storage
        storage[i], storage[j] = storage[j], storage[i]
        if self._observer:
            self._notify("swap", i=i, j=j, pi=storage[i].priority, pj=storage[j].priority)

    # ---------- VERIFICATION ----------

    def is_valid_heap(self) -> bool:
        """
        Проверяет соблюдение инварианта бинарной max-кучи.

        Returns:
            True, если приоритет каждого родителя не меньше приоритетов
            его потомков в пределах count, иначе False.
        """
        storage = self._storage
        for i in range(2, self._count + 1):
            if storage[i // 2].priority < storage[i].priority:
                return False
        return True

    # ---------- STATISTICS AND METRICS ----------

    def depth(self) -> int:
        """
        Возвращает глубину (высоту) бинарной кучи.

        Returns:
            Количество уровней в дереве.
        """
        if not self._count:
            return 0
        return int(math.log2(self._count)) + 1

    def get_stats(self) -> Dict[str, Any]:
        """
        Возвращает статистику кучи для отладки и мониторинга.
        """
        return {
            "count": self._count,
            "capacity": self._capacity,
            "depth": self.depth(),
            "is_full": self.is_full(),
            "is_valid": self.is_valid_heap(),
            "is_sorted": self._sorted,
            "operations_count": self._ops,
            "has_observer": self._observer is not None,
            "verify_rate": self._verify_sr,
        }

    # ---------- VISUALIZATION HELPER ----------

    def to_tree_repr(self, max_depth: int = 4) -> List[str]:
        """
        Генерирует текстовое представление дерева приоритетов по уровням.

        Args:
            max_depth: Максимальная глубина для отображения.

        Returns:
            Список строк, представляющих уровни дерева.
        """
        if not self._count:
            return ["[Empty heap]"]

        result = []
        n = self._count
        depth = min(self.depth(), max_depth)

        for level in range(depth):
            start = 2 ** level
            end = min(2 ** (level + 1) - 1, n)

            level_items = []
            for i in range(start, end + 1):
                item_str = str(self._storage[i].priority)
                if len(item_str) > 10:
                    item_str = item_str[:10] + "..."
                level_items.append(item_str)

            indent = " " * (2 ** (depth - level) - 2)
            separator = " " * (2 ** (depth - level + 1) - 2)
            result.append(f"{indent}{separator.join(level_items)}")

        shown = 2 ** max_depth - 1
        if n > shown:
            result.append(f"... and {n - shown} more items")

        return result


def _as_record(item: Union[Record, Tuple[float, Any], Sequence]) -> Record:
    if isinstance(item, Record):
        return item
    priority, element = item
    return Record(priority, element)
