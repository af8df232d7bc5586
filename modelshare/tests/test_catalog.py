import unittest

from modelshare import catalog
from modelshare.types import Model


def _model(model_id, **fields):
    fields.setdefault("title", f"Model {model_id}")
    fields.setdefault("user_id", "u1")
    return Model(id=model_id, **fields)


class ExploreTests(unittest.TestCase):
    def setUp(self):
        self.models = [
            _model(
                "car",
                title="Race Car",
                category="vehicles",
                tags=["Lowpoly"],
                downloads_count=3,
                view_count=50,
                created_at="2024-01-02T00:00:00+00:00",
            ),
            _model(
                "house",
                title="Cottage",
                description="A small house",
                category="architecture",
                downloads_count=10,
                view_count=5,
                created_at="2024-01-03T00:00:00+00:00",
            ),
            _model(
                "truck",
                title="Truck",
                category="vehicles",
                tags=["lowpoly", "rigged"],
                downloads_count=7,
                view_count=1,
                created_at="2024-01-01T00:00:00+00:00",
            ),
        ]

    def _ids(self, models):
        return sorted(m.id for m in models)

    def test_query_matches_title_description_or_tag(self):
        self.assertEqual(self._ids(catalog.filter_models(self.models, "CAR")), ["car"])
        self.assertEqual(
            self._ids(catalog.filter_models(self.models, "house")), ["house"]
        )
        self.assertEqual(
            self._ids(catalog.filter_models(self.models, "lowpoly")), ["car", "truck"]
        )

    def test_category_filter(self):
        result = catalog.filter_models(self.models, category="vehicles")
        self.assertEqual({m.id for m in result}, {"car", "truck"})
        self.assertEqual(len(catalog.filter_models(self.models, category="all")), 3)

    def test_sort_orders(self):
        def order(sort_by):
            return [m.id for m in catalog.sort_models(self.models, sort_by)]

        self.assertEqual(order("newest"), ["house", "car", "truck"])
        self.assertEqual(order("popular"), ["house", "truck", "car"])
        self.assertEqual(order("downloads"), ["house", "truck", "car"])
        self.assertEqual(order("views"), ["car", "house", "truck"])

    def test_explore_filters_then_sorts(self):
        result = catalog.explore(self.models, "lowpoly", "vehicles", "downloads")
        self.assertEqual([m.id for m in result], ["truck", "car"])

    def test_search_ignores_tags(self):
        self.assertEqual(catalog.search_models(self.models, "rigged"), [])
        self.assertEqual(
            [m.id for m in catalog.search_models(self.models, "small")], ["house"]
        )

    def test_related_models(self):
        related = catalog.related_models(self.models, self.models[0])
        self.assertEqual([m.id for m in related], ["truck"])
        self.assertEqual(
            catalog.related_models(self.models, _model("x", category="")), []
        )


class StatsTests(unittest.TestCase):
    def test_dashboard_stats(self):
        models = [
            _model("a", downloads_count=2, view_count=10, likes_count=1),
            _model("b", downloads_count=3, view_count=0, likes_count=4),
        ]
        stats = catalog.dashboard_stats(models)
        self.assertEqual(stats.as_dict(), {"downloads": 5, "views": 10, "likes": 5})

    def test_profile_stats(self):
        stats = catalog.profile_stats([_model("a", downloads_count=2), _model("b")])
        self.assertEqual(stats.as_dict(), {"downloads": 2, "views": 0, "models": 2})
        self.assertEqual(
            catalog.profile_stats([]).as_dict(), {"downloads": 0, "views": 0, "models": 0}
        )

    def test_recent_activity(self):
        models = [
            _model(str(i), created_at=f"2024-01-0{i}T00:00:00+00:00") for i in range(1, 8)
        ]
        activity = catalog.recent_activity(models)
        self.assertEqual([a["id"] for a in activity], ["7", "6", "5", "4", "3"])
        self.assertEqual(activity[0]["type"], "upload")
        self.assertEqual(activity[0]["title"], "Model 7")


class FormatFileSizeTests(unittest.TestCase):
    def test_formats(self):
        self.assertEqual(catalog.format_file_size(0), "0 Bytes")
        self.assertEqual(catalog.format_file_size(None), "0 Bytes")
        self.assertEqual(catalog.format_file_size(500), "500 Bytes")
        self.assertEqual(catalog.format_file_size(10240), "10 KB")
        self.assertEqual(catalog.format_file_size(1536), "1.5 KB")
        self.assertEqual(catalog.format_file_size(1024 * 1024 * 1.25), "1.25 MB")
        self.assertEqual(catalog.format_file_size(3 * 1024**3), "3 GB")


if __name__ == "__main__":
    unittest.main()
