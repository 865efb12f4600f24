import random
import unittest

from heap import BinaryMaxHeap, DEFAULT_CAPACITY, HeapFullError, Record


def one_indexed(priorities):
    return [None] + [Record(p, p) for p in priorities]


class TestQueueOperations(unittest.TestCase):
    def test_scenario_insert_then_extract(self):
        heap = BinaryMaxHeap(capacity=4)
        heap.insert(5, "a")
        heap.insert(1, "b")
        heap.insert(9, "c")
        heap.insert(3, "d")

        self.assertEqual(heap.count(), 4)
        self.assertEqual([heap.extract_max() for _ in range(4)], ["c", "a", "d", "b"])
        self.assertIsNone(heap.extract_max())

    def test_default_capacity(self):
        heap = BinaryMaxHeap()
        self.assertEqual(heap.capacity, DEFAULT_CAPACITY)
        self.assertEqual(heap.count(), 0)

    def test_extract_from_empty_is_repeatable(self):
        heap = BinaryMaxHeap(capacity=3)
        for _ in range(5):
            self.assertIsNone(heap.extract_max())
        self.assertEqual(heap.count(), 0)

    def test_extract_empty_returns_given_default(self):
        marker = object()
        heap = BinaryMaxHeap(capacity=1)
        self.assertIs(heap.extract_max(default=marker), marker)

    def test_single_record(self):
        heap = BinaryMaxHeap(capacity=1)
        heap.insert(-2.5, "only")
        self.assertEqual(heap.extract_max(), "only")
        self.assertEqual(heap.count(), 0)

    def test_capacity_boundary(self):
        heap = BinaryMaxHeap(capacity=8)
        for i in range(8):
            heap.insert(i, str(i))
        self.assertEqual(heap.count(), 8)
        self.assertTrue(heap.is_full())

        with self.assertRaises(HeapFullError):
            heap.insert(100, "overflow")
        self.assertEqual(heap.count(), 8)
        self.assertEqual(heap.peek_max(), "7")

    def test_full_error_is_overflow_error(self):
        heap = BinaryMaxHeap(capacity=0)
        with self.assertRaises(OverflowError):
            heap.insert(1, "x")

    def test_invariant_after_every_operation(self):
        rng = random.Random(7)
        heap = BinaryMaxHeap(capacity=64)
        for _ in range(500):
            if heap.is_full() or (not heap.is_empty() and rng.random() < 0.4):
                heap.extract_max()
            else:
                heap.insert(rng.randint(-20, 20), object())
            self.assertTrue(heap.is_valid_heap())
            self.assertLessEqual(heap.count(), heap.capacity)

    def test_extraction_order_is_descending(self):
        rng = random.Random(11)
        for n in (1, 2, 3, 10, 37):
            heap = BinaryMaxHeap(capacity=n)
            items = [(rng.uniform(-100, 100), i) for i in range(n)]
            for priority, element in items:
                heap.insert(priority, element)

            by_element = dict((e, p) for p, e in items)
            extracted = [heap.extract_max() for _ in range(n)]
            priorities = [by_element[e] for e in extracted]

            self.assertEqual(priorities, sorted(priorities, reverse=True))
            self.assertEqual(sorted(extracted), list(range(n)))
            self.assertIsNone(heap.extract_max())

    def test_equal_priorities(self):
        heap = BinaryMaxHeap(capacity=5)
        for element in "abcde":
            heap.insert(1, element)
        self.assertEqual(sorted(heap.drain()), list("abcde"))

    def test_elements_are_never_compared(self):
        class Opaque:
            def __lt__(self, other):
                raise AssertionError("element compared")

            __gt__ = __le__ = __ge__ = __lt__

        heap = BinaryMaxHeap(capacity=4)
        payloads = [Opaque() for _ in range(4)]
        for p in payloads:
            heap.insert(0, p)
        self.assertEqual(len(list(heap.drain())), 4)

    def test_drain_yields_descending(self):
        heap = BinaryMaxHeap(capacity=6)
        for p in [4, 8, 15, 16, 23, 42]:
            heap.insert(p, p)
        self.assertEqual(list(heap.drain()), [42, 23, 16, 15, 8, 4])
        self.assertTrue(heap.is_empty())

    def test_freed_slot_is_released(self):
        heap = BinaryMaxHeap(capacity=3)
        heap.insert(1, "a")
        heap.insert(2, "b")
        heap.extract_max()
        self.assertEqual(heap.records(), [Record(1, "a")])
        self.assertIsNone(heap._storage[2])


class TestBuildAndSort(unittest.TestCase):
    def test_heapsort_scenario(self):
        records = one_indexed([3, 1, 4, 1, 5, 9, 2, 6])
        result = BinaryMaxHeap.heapsort(records)

        self.assertIs(result, records)
        self.assertIsNone(records[0])
        self.assertEqual([r.priority for r in records[1:]], [1, 1, 2, 3, 4, 5, 6, 9])

    def test_heapsort_is_permutation(self):
        rng = random.Random(3)
        for n in (0, 1, 2, 5, 50, 129):
            priorities = [rng.randint(-10, 10) for _ in range(n)]
            records = [None] + [Record(p, i) for i, p in enumerate(priorities)]
            BinaryMaxHeap.heapsort(records)

            sorted_priorities = [r.priority for r in records[1:]]
            self.assertEqual(sorted_priorities, sorted(priorities))
            self.assertEqual(sorted(r.element for r in records[1:]), list(range(n)))
            for r in records[1:]:
                self.assertEqual(priorities[r.element], r.priority)

    def test_heapsort_accepts_pairs(self):
        records = [None, (2.5, "x"), (-1, "y"), (7, "z")]
        BinaryMaxHeap.heapsort(records)
        self.assertEqual([r.element for r in records[1:]], ["y", "x", "z"])

    def test_from_array_takes_ownership(self):
        records = one_indexed([1, 2, 3, 4, 5])
        heap = BinaryMaxHeap.from_array(records)

        self.assertIs(heap._storage, records)
        self.assertEqual(heap.capacity, 5)
        self.assertEqual(heap.count(), 5)
        self.assertTrue(heap.is_valid_heap())
        self.assertEqual(records[1].priority, 5)

    def test_from_array_matches_repeated_insert(self):
        rng = random.Random(5)
        for n in (1, 4, 16, 33):
            priorities = [rng.randint(0, 1000) for _ in range(n)]

            built = BinaryMaxHeap.from_array(one_indexed(priorities))
            inserted = BinaryMaxHeap(capacity=n)
            for p in priorities:
                inserted.insert(p, p)

            self.assertEqual(list(built.drain()), list(inserted.drain()))

    def test_from_array_empty(self):
        heap = BinaryMaxHeap.from_array([None])
        self.assertEqual(heap.capacity, 0)
        self.assertIsNone(heap.extract_max())
        self.assertEqual(heap.sort(), [None])

    def test_sort_leaves_count_zero(self):
        heap = BinaryMaxHeap(capacity=4)
        for p in [2, 9, 4]:
            heap.insert(p, str(p))

        storage = heap.sort()
        self.assertEqual(heap.count(), 0)
        self.assertTrue(heap.sorted)
        self.assertEqual([r.priority for r in storage[1:4]], [2, 4, 9])
        self.assertIsNone(storage[4])

    def test_build_prefers_left_child_on_tie(self):
        records = [None, Record(0, "root"), Record(5, "L"), Record(5, "R")]
        BinaryMaxHeap.from_array(records)

        self.assertEqual(records[1].element, "L")
        self.assertEqual(records[2].element, "root")
        self.assertEqual(records[3].element, "R")

    def test_extract_prefers_left_child_on_tie(self):
        heap = BinaryMaxHeap(capacity=4)
        heap.insert(9, "top")
        heap.insert(5, "L")
        heap.insert(5, "R")
        heap.insert(1, "last")

        self.assertEqual(heap.extract_max(), "top")
        self.assertEqual(heap.records(), [Record(5, "L"), Record(1, "last"), Record(5, "R")])

    def test_sort_reports_sorted_record_count(self):
        events = []
        heap = BinaryMaxHeap(capacity=32, observer=lambda e, p: events.append((e, p)))
        for p in (3, 1, 2):
            heap.insert(p, p)

        heap.sort()
        self.assertEqual(events[-1], ("sort_done", {"size": 3}))

    def test_clear_restores_queue_after_sort(self):
        heap = BinaryMaxHeap(capacity=3)
        heap.insert(1, "a")
        heap.sort()
        heap.clear()

        self.assertFalse(heap.sorted)
        heap.insert(5, "b")
        self.assertEqual(heap.extract_max(), "b")


class TestObserverAndDiagnostics(unittest.TestCase):
    def test_events_are_reported(self):
        events = []
        heap = BinaryMaxHeap(capacity=2, observer=lambda e, p: events.append((e, p)))
        heap.insert(1, "a")
        heap.insert(2, "b")
        with self.assertRaises(HeapFullError):
            heap.insert(3, "c")
        heap.extract_max()

        names = [e for e, _ in events]
        self.assertEqual(names[:2], ["insert", "insert"])
        self.assertIn("swap", names)
        self.assertIn("full", names)
        self.assertEqual(names[-1], "extract")
        self.assertEqual(events[-1][1]["element"], "b")
        self.assertEqual(events[0][1]["index"], 1)

    def test_failing_observer_does_not_break_heap(self):
        def observer(event, payload):
            raise ValueError("boom")

        heap = BinaryMaxHeap(capacity=3, observer=observer)
        heap.insert(1, "a")
        heap.insert(3, "b")
        self.assertEqual(heap.extract_max(), "b")

    def test_reentrant_mutation_rejected(self):
        errors = []

        def observer(event, payload):
            if event == "insert":
                try:
                    heap.insert(0, "nested")
                except RuntimeError as e:
                    errors.append(e)

        heap = BinaryMaxHeap(capacity=4, observer=observer)
        heap.insert(1, "a")
        self.assertEqual(len(errors), 1)
        self.assertEqual(heap.count(), 1)

    def test_long_payloads_are_compacted(self):
        seen = []
        heap = BinaryMaxHeap(capacity=1, observer=lambda e, p: seen.append(p))
        heap.insert(1, "x" * 500)
        self.assertTrue(seen[0]["element"].endswith("…"))

    def test_verification_sampling(self):
        heap = BinaryMaxHeap(capacity=10, verify_sample_rate=1)
        for p in range(5):
            heap.insert(p, p)
        heap._storage[5].priority = 1000
        with self.assertRaises(AssertionError):
            heap.insert(-5, "leaf")

    def test_stats_and_depth(self):
        heap = BinaryMaxHeap(capacity=10)
        self.assertEqual(heap.depth(), 0)
        for p in range(7):
            heap.insert(p, p)

        stats = heap.get_stats()
        self.assertEqual(stats["count"], 7)
        self.assertEqual(stats["capacity"], 10)
        self.assertEqual(stats["depth"], 3)
        self.assertTrue(stats["is_valid"])
        self.assertEqual(stats["operations_count"], 7)
        self.assertEqual(len(heap), 7)
        self.assertIn("7/10", repr(heap))

    def test_tree_repr(self):
        heap = BinaryMaxHeap(capacity=4)
        self.assertEqual(heap.to_tree_repr(), ["[Empty heap]"])
        for p in [1, 2, 3]:
            heap.insert(p, p)

        lines = heap.to_tree_repr()
        self.assertEqual(len(lines), 2)
        self.assertEqual(lines[0].strip(), "3")
        self.assertEqual(lines[1].split(), ["1", "2"])

    def test_tree_repr_truncates(self):
        heap = BinaryMaxHeap.from_array(one_indexed(range(10)))
        lines = heap.to_tree_repr(max_depth=2)
        self.assertEqual(lines[-1], "... and 7 more items")


if __name__ == '__main__':
    unittest.main()
