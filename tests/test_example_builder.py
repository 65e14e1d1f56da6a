import unittest

from shapetrack.canonical.descriptor import TypeMetadata, TypeTag
from shapetrack.governance.conflict_reporter import CollectingConflictReporter
from shapetrack.outputs.example_builder import (
    MIXED_DATE_EXAMPLE,
    MIXED_STRING_EXAMPLE,
    build_example_value,
    get_example_object,
    prepare_conflict_examples,
)
from shapetrack.pipeline.node_operations import add_node, add_nodes, delete_node


def _metadata(*nodes) -> TypeMetadata:
    return add_nodes(TypeMetadata(ignored_fields={"id"}), nodes)


class ExampleObjectTests(unittest.TestCase):
    def test_example_object(self) -> None:
        metadata = _metadata(
            {
                "id": "1",
                "title": "Hello",
                "views": 10,
                "draft": False,
                "tags": ["a", "b"],
                "author": {"name": "Ann", "address": {"city": "Oslo"}},
                "related___NODE": ["x", "y"],
                "nothing": None,
            }
        )
        self.assertEqual(
            get_example_object(metadata.field_map, "Post"),
            {
                "title": "Hello",
                "views": 10,
                "draft": False,
                "tags": ["a"],
                "author": {"name": "Ann", "address": {"city": "Oslo"}},
                "related___NODE": ["x", "y"],
            },
        )

    def test_example_is_first_value_seen(self) -> None:
        metadata = _metadata({"id": "1", "foo": "first"}, {"id": "2", "foo": "second"})
        delete_node(metadata, {"id": "1", "foo": "first"})
        self.assertEqual(get_example_object(metadata.field_map, "Post"), {"foo": "first"})

    def test_numeric_widening(self) -> None:
        metadata = _metadata({"id": "1", "foo": 1}, {"id": "2", "foo": 1.5})
        reporter = CollectingConflictReporter()
        example = get_example_object(metadata.field_map, "", reporter)
        self.assertEqual(example, {"foo": 1})
        self.assertFalse(reporter.has_conflicts())

    def test_date_and_string_mix(self) -> None:
        metadata = _metadata(
            {"id": "1", "when": "2019-01-01", "label": "2019-01-01"},
            {"id": "2", "when": "", "label": "soon"},
        )
        self.assertEqual(
            get_example_object(metadata.field_map, "Post"),
            {"when": MIXED_DATE_EXAMPLE, "label": MIXED_STRING_EXAMPLE},
        )

    def test_deleted_references_are_dropped(self) -> None:
        metadata = _metadata(
            {"id": "1", "related___NODE": ["a", "b"]},
            {"id": "2", "related___NODE": ["b"]},
        )
        delete_node(metadata, {"id": "1", "related___NODE": ["a", "b"]})
        self.assertEqual(
            get_example_object(metadata.field_map, "Post"), {"related___NODE": ["b"]}
        )

    def test_empty_object_props_are_omitted(self) -> None:
        metadata = _metadata({"id": "1", "foo": {"bar": None, "baz": 1}})
        self.assertEqual(get_example_object(metadata.field_map, "Post"), {"foo": {"baz": 1}})

    def test_every_type_builds_a_value(self) -> None:
        samples = {
            TypeTag.INT: 1,
            TypeTag.FLOAT: 1.5,
            TypeTag.DATE: "2019-01-01",
            TypeTag.STRING: "x",
            TypeTag.BOOLEAN: True,
            TypeTag.ARRAY: [1],
            TypeTag.LIST_OF_UNION: ["a"],
            TypeTag.OBJECT: {"a": 1},
        }
        self.assertEqual(set(samples), set(TypeTag) - {TypeTag.NULL})

        for tag, value in samples.items():
            key = "foo___NODE" if tag == TypeTag.LIST_OF_UNION else "foo"
            with self.subTest(tag=tag):
                descriptor = _metadata({"id": "1", key: value}).field_map[key]
                self.assertEqual(descriptor.possible_types(), [tag])
                self.assertIsNotNone(build_example_value(descriptor))

    def test_array_of_conflicts_is_null(self) -> None:
        metadata = _metadata({"id": "1", "foo": [1, "x"]})
        self.assertIsNone(build_example_value(metadata.field_map["foo"]))


class ConflictReportingTests(unittest.TestCase):
    def test_conflict_surfaced(self) -> None:
        metadata = add_node(
            add_node(TypeMetadata(ignored_fields={"id"}), {"id": "1", "foo": 25}),
            {"id": "2", "foo": "x"},
        )
        reporter = CollectingConflictReporter()
        example = get_example_object(metadata.field_map, "", reporter)

        self.assertEqual(example, {})
        self.assertEqual(
            reporter.conflicts,
            {
                ".foo": [
                    {"type": "number", "value": 25},
                    {"type": "string", "value": "x"},
                ]
            },
        )

    def test_no_reporter_is_fine(self) -> None:
        metadata = _metadata({"id": "1", "foo": 25}, {"id": "2", "foo": "x"})
        self.assertEqual(get_example_object(metadata.field_map, "Post"), {})

    def test_nested_conflict_path(self) -> None:
        metadata = _metadata(
            {"id": "1", "author": {"age": 30, "name": "Ann"}},
            {"id": "2", "author": {"age": "thirty"}},
        )
        reporter = CollectingConflictReporter()
        example = get_example_object(metadata.field_map, "Post", reporter)

        self.assertEqual(example, {"author": {"name": "Ann"}})
        self.assertEqual(list(reporter.conflicts), ["Post.author.age"])

    def test_array_item_conflict_in_one_record(self) -> None:
        metadata = _metadata({"id": "1", "foo": [5, "bar"]})
        reporter = CollectingConflictReporter()
        get_example_object(metadata.field_map, "Post", reporter)

        self.assertEqual(
            reporter.conflicts["Post.foo"],
            [{"type": "[number,string]", "value": [5, "bar"]}],
        )

    def test_array_item_conflict_across_records(self) -> None:
        metadata = _metadata({"id": "1", "foo": [5]}, {"id": "2", "foo": ["bar"]})
        reporter = CollectingConflictReporter()
        get_example_object(metadata.field_map, "Post", reporter)

        self.assertEqual(
            reporter.conflicts["Post.foo"],
            [
                {"type": "[number]", "value": [5]},
                {"type": "[string]", "value": ["bar"]},
            ],
        )

    def test_structured_alternatives(self) -> None:
        metadata = _metadata(
            {"id": "1", "foo": {"a": 1}},
            {"id": "2", "foo": [1]},
            {"id": "3", "foo___NODE": ["n1"]},
            {"id": "4", "foo___NODE": "n2"},
        )
        self.assertEqual(
            prepare_conflict_examples(metadata.field_map["foo"]),
            [
                {"type": "object", "value": {"a": 1}},
                {"type": "array", "value": [1]},
            ],
        )
        self.assertEqual(
            prepare_conflict_examples(metadata.field_map["foo___NODE"]),
            [
                {"type": "[string]", "value": ["n1"]},
                {"type": "string", "value": "n2"},
            ],
        )

    def test_conflict_resolved_by_delete(self) -> None:
        metadata = _metadata({"id": "1", "foo": 25}, {"id": "2", "foo": "x"})
        delete_node(metadata, {"id": "2", "foo": "x"})
        reporter = CollectingConflictReporter()

        self.assertEqual(get_example_object(metadata.field_map, "Post", reporter), {"foo": 25})
        self.assertFalse(reporter.has_conflicts())


if __name__ == "__main__":
    unittest.main()
