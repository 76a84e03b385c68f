"""Tests for domain models to verify they work correctly."""

import math

import numpy as np
import pytest

from devstrip.domain import Curve, Point2, Point3, TrimmedMesh
from devstrip.exceptions import InvalidGeometryError


class TestPoint:
    """Tests for Point2 and Point3."""

    def test_point_creation(self) -> None:
        """Test basic point creation."""
        p = Point2(1.5, -2.0)
        assert p.x == 1.5
        assert p.y == -2.0
        assert p.to_tuple() == (1.5, -2.0)

    def test_point_distance_and_lerp(self) -> None:
        """Test distance and interpolation."""
        a = Point2(0.0, 0.0)
        b = Point2(3.0, 4.0)
        assert a.distance_to(b) == pytest.approx(5.0)
        assert a.lerp(b, 0.5) == Point2(1.5, 2.0)

    def test_point3_lerp(self) -> None:
        """Test 3D interpolation reaches both ends."""
        a = Point3(0.0, 1.0, 0.0)
        b = Point3(2.0, -1.0, 4.0)
        assert a.lerp(b, 0.0) == a
        assert a.lerp(b, 1.0) == b
        assert a.distance_to(b) == pytest.approx(math.sqrt(4 + 4 + 16))

    def test_point_serialization(self) -> None:
        """Test point serialization and deserialization."""
        p1 = Point2(100.0, 200.0)
        assert Point2.from_dict(p1.to_dict()) == p1

        q1 = Point3(1.0, 2.0, 3.0)
        assert Point3.from_dict(q1.to_dict()) == q1

    def test_point_immutable(self) -> None:
        """Test that point is immutable."""
        p = Point2(100.0, 200.0)
        with pytest.raises(AttributeError):
            p.x = 300.0  # type: ignore


@pytest.fixture
def square() -> Curve:
    """Closed unit square."""
    return Curve([(0, 0), (1, 0), (1, 1), (0, 1)], closed=True)


@pytest.fixture
def polyline() -> Curve:
    """Open L-shaped polyline of length 2."""
    return Curve([(0, 0), (1, 0), (1, 1)])


class TestCurveConstruction:
    """Tests for Curve construction and control point access."""

    def test_minimum_points_open(self) -> None:
        """Test open curves need two control points."""
        with pytest.raises(InvalidGeometryError):
            Curve([(0, 0)])

    def test_minimum_points_closed(self) -> None:
        """Test closed curves need three control points."""
        with pytest.raises(InvalidGeometryError):
            Curve([(0, 0), (1, 0)], closed=True)

    def test_accepts_tuples(self, polyline: Curve) -> None:
        """Test tuples are converted to Point2."""
        assert polyline.control_points[1] == Point2(1.0, 0.0)
        assert polyline.control_point_count == 3
        assert polyline.segment_count == 2

    def test_control_point_out_of_range(self, square: Curve) -> None:
        """Test out-of-range access returns None."""
        assert square.control_point(0) == Point2(0.0, 0.0)
        assert square.control_point(4) is None
        assert square.control_point(-1) is None

    def test_equality(self, square: Curve) -> None:
        """Test curves compare by points and closed flag."""
        assert square == square.clone()
        assert square != Curve([(0, 0), (1, 0), (1, 1), (0, 1)])


class TestCurveEditing:
    """Tests for Curve edits."""

    def test_set_control_point(self, polyline: Curve) -> None:
        """Test moving a point updates length."""
        polyline.set_control_point(2, (1, 3))
        assert polyline.control_point(2) == Point2(1.0, 3.0)
        assert polyline.length() == pytest.approx(4.0)

    def test_set_control_point_out_of_range_is_ignored(self, polyline: Curve) -> None:
        """Test invalid index leaves the curve unchanged."""
        before = polyline.control_points
        polyline.set_control_point(7, (5, 5))
        assert polyline.control_points == before

    def test_append(self, polyline: Curve) -> None:
        """Test append returns the new index."""
        index = polyline.append((0, 1))
        assert index == 3
        assert polyline.length() == pytest.approx(3.0)

    def test_insert_at_closest_segment(self, polyline: Curve) -> None:
        """Test insertion goes into the nearest segment."""
        index = polyline.insert_at((1.1, 0.5))
        assert index == 2
        assert polyline.control_point(2) == Point2(1.1, 0.5)

    def test_insert_at_closing_segment(self, square: Curve) -> None:
        """Test closed curves consider the segment back to the start."""
        index = square.insert_at((-0.1, 0.5))
        assert index == 4
        assert square.control_point_count == 5

    def test_remove(self, square: Curve) -> None:
        """Test removing a point above the minimum."""
        square.append((0.5, 1.5))
        assert square.remove(4) is True
        assert square.control_point_count == 4

    def test_remove_refuses_below_minimum(self) -> None:
        """Test removal never drops below the minimum point count."""
        triangle = Curve([(0, 0), (1, 0), (0, 1)], closed=True)
        assert triangle.remove(0) is False
        assert triangle.control_point_count == 3

    def test_remove_out_of_range(self, square: Curve) -> None:
        """Test removal of a missing index."""
        assert square.remove(10) is False

    def test_clone_is_independent(self, square: Curve) -> None:
        """Test editing a clone leaves the original untouched."""
        copy = square.clone()
        copy.set_control_point(0, (-1, -1))
        assert square.control_point(0) == Point2(0.0, 0.0)
        assert square.length() == pytest.approx(4.0)


class TestCurveEvaluation:
    """Tests for point evaluation and arc-length queries."""

    def test_open_curve_clamps(self, polyline: Curve) -> None:
        """Test open curves clamp t outside [0, 1]."""
        assert polyline.point(-0.5) == Point2(0.0, 0.0)
        assert polyline.point(1.5) == Point2(1.0, 1.0)
        assert polyline.point(0.5) == Point2(1.0, 0.0)

    def test_closed_curve_is_periodic(self, square: Curve) -> None:
        """Test closed curves wrap t modulo 1."""
        p0 = square.point(0.0)
        p1 = square.point(1.0)
        assert p0.distance_to(p1) < 1e-12
        q = square.point(0.3)
        assert q.distance_to(square.point(1.3)) < 1e-9

    def test_sample_points(self, square: Curve) -> None:
        """Test sampling returns n+1 points and nothing for n <= 0."""
        samples = square.sample_points(8)
        assert len(samples) == 9
        assert samples[0] == samples[-1]
        assert square.sample_points(0) == []

    def test_length_exact_for_polylines(self, square: Curve, polyline: Curve) -> None:
        """Test length of straight segments."""
        assert square.length() == pytest.approx(4.0)
        assert polyline.length() == pytest.approx(2.0)

    def test_length_converges_for_circle(self) -> None:
        """Test circle polygon length approaches the circumference."""
        circle = Curve.circle(1.0, 256)
        coarse = circle.length(samples=16)
        fine = circle.length()
        assert coarse < fine
        assert fine == pytest.approx(2 * math.pi, rel=1e-3)

    def test_point_at_distance_clamps_open(self, polyline: Curve) -> None:
        """Test distances outside the curve clamp to its ends."""
        assert polyline.point_at_distance(-1.0) == Point2(0.0, 0.0)
        assert polyline.point_at_distance(10.0) == Point2(1.0, 1.0)
        p = polyline.point_at_distance(1.5)
        assert p.x == pytest.approx(1.0)
        assert p.y == pytest.approx(0.5)

    def test_point_at_distance_wraps_closed(self, square: Curve) -> None:
        """Test closed curves wrap distances around the perimeter."""
        p = square.point_at_distance(4.5)
        assert p.x == pytest.approx(0.5)
        assert p.y == pytest.approx(0.0)

    @pytest.mark.parametrize("t", [0.0, 0.1, 0.37, 0.5, 0.83, 0.99])
    def test_distance_roundtrip(self, t: float) -> None:
        """Test point_at_distance(distance_at(t)) lands on point(t)."""
        curve = Curve([(0, 0), (3, 0), (3, 1), (1, 2), (0, 1)], closed=True)
        p = curve.point_at_distance(curve.distance_at(t))
        assert p.distance_to(curve.point(t)) < 1e-6

    def test_edit_invalidates_length(self, square: Curve) -> None:
        """Test the cached table is rebuilt after an edit."""
        assert square.length() == pytest.approx(4.0)
        square.set_control_point(2, (2, 2))
        assert square.length() == pytest.approx(1 + math.sqrt(5) + math.sqrt(5) + 1)


class TestCurveShapes:
    """Tests for shape helpers and serialization."""

    def test_bounding_box(self, polyline: Curve) -> None:
        """Test bounding box of control points."""
        assert polyline.bounding_box() == (0.0, 0.0, 1.0, 1.0)

    def test_normalize(self) -> None:
        """Test normalize moves to origin and scales the longer side to 1."""
        curve = Curve([(2, 2), (6, 2), (6, 4)])
        assert curve.normalize() is curve
        assert curve.bounding_box() == (0.0, 0.0, 1.0, 0.5)

    def test_circle(self) -> None:
        """Test circle starts on +X and runs counter-clockwise."""
        circle = Curve.circle(2.0, 4)
        assert circle.closed
        assert circle.control_point(0) == Point2(2.0, 0.0)
        assert circle.control_point(1).y == pytest.approx(2.0)

    def test_circle_rejects_bad_radius(self) -> None:
        """Test non-positive radius."""
        with pytest.raises(InvalidGeometryError):
            Curve.circle(0.0, 8)

    def test_data_roundtrip(self, square: Curve) -> None:
        """Test to_data/from_data preserves points and closed flag."""
        data = square.to_data()
        assert data["closed"] is True
        assert data["controlPoints"][1] == {"x": 1.0, "y": 0.0}
        assert Curve.from_data(data) == square

    def test_from_data_malformed(self) -> None:
        """Test malformed data raises InvalidGeometryError."""
        with pytest.raises(InvalidGeometryError):
            Curve.from_data({"closed": True})
        with pytest.raises(InvalidGeometryError):
            Curve.from_data({"controlPoints": [{"x": 1}], "closed": False})


class TestTrimmedMesh:
    """Tests for TrimmedMesh."""

    @pytest.fixture
    def triangle_mesh(self) -> TrimmedMesh:
        """Single triangle in the XY plane."""
        return TrimmedMesh(
            vertices=np.array([0, 0, 0, 1, 0, 0, 0, 1, 0], dtype=np.float64),
            normals=np.array([0, 0, 1] * 3, dtype=np.float64),
            indices=np.array([0, 1, 2]),
            uvs=np.array([0, 0, 1, 0, 0, 1]),
        )

    def test_counts_and_dtypes(self, triangle_mesh: TrimmedMesh) -> None:
        """Test buffers are converted to the flat render layout."""
        assert triangle_mesh.vertex_count == 3
        assert triangle_mesh.triangle_count == 1
        assert triangle_mesh.vertices.dtype == np.float32
        assert triangle_mesh.indices.dtype == np.uint32
        assert not triangle_mesh.is_empty()

    def test_buffers_read_only(self, triangle_mesh: TrimmedMesh) -> None:
        """Test mesh buffers cannot be modified."""
        with pytest.raises(ValueError):
            triangle_mesh.vertices[0] = 5.0

    def test_construction_copies_input(self) -> None:
        """Test mutating the source array leaves the mesh unchanged."""
        source = np.zeros(9, dtype=np.float32)
        mesh = TrimmedMesh(
            vertices=source,
            normals=np.zeros(9),
            indices=np.array([0, 1, 2]),
            uvs=np.zeros(6),
        )
        source[0] = 7.0
        assert mesh.vertices[0] == 0.0

    def test_bounding_box(self, triangle_mesh: TrimmedMesh) -> None:
        """Test bounding box of positions."""
        assert triangle_mesh.bounding_box() == ((0.0, 0.0, 0.0), (1.0, 1.0, 0.0))

    def test_empty(self) -> None:
        """Test the empty mesh."""
        mesh = TrimmedMesh.empty()
        assert mesh.is_empty()
        assert mesh.vertex_count == 0
        assert mesh.bounding_box() == ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))

    def test_invalid_buffers(self) -> None:
        """Test inconsistent buffer sizes are rejected."""
        with pytest.raises(ValueError):
            TrimmedMesh(
                vertices=np.zeros(9),
                normals=np.zeros(6),
                indices=np.array([0, 1, 2]),
                uvs=np.zeros(6),
            )

    def test_serialization(self, triangle_mesh: TrimmedMesh) -> None:
        """Test dictionary round trip."""
        data = triangle_mesh.to_dict()
        assert set(data) == {"vertices", "normals", "indices", "uvs"}
        restored = TrimmedMesh.from_dict(data)
        assert np.array_equal(restored.indices, triangle_mesh.indices)
        assert np.allclose(restored.vertices, triangle_mesh.vertices)

    def test_from_dict_without_uvs(self, triangle_mesh: TrimmedMesh) -> None:
        """Test missing uvs default to zeros."""
        data = triangle_mesh.to_dict()
        del data["uvs"]
        restored = TrimmedMesh.from_dict(data)
        assert restored.uvs.size == 6
        assert not restored.uvs.any()
