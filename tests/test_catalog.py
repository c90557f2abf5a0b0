import pytest

from catalog import SERVICES, filter_services, get_service, rate_list_csv, rate_list_frame


def test_empty_query_returns_full_list_in_order():
    assert filter_services(SERVICES, "") == list(SERVICES)


def test_thyroid_matches_only_thyroid_profile():
    result = filter_services(SERVICES, "thyroid")
    assert [s.name for s in result] == ["Thyroid Profile (T3,T4,TSH)"]


@pytest.mark.parametrize("query", ["CBC", "profile", "GLUCOSE", "rt-pcr", "xyz", " ", "l p"])
def test_filter_is_exact_case_insensitive_substring(query):
    expected = [s for s in SERVICES if query.lower() in f"{s.name} {s.description}".lower()]
    assert filter_services(SERVICES, query) == expected


def test_query_spanning_name_and_description():
    # name and description are joined with a single space
    result = filter_services(SERVICES, "(cbc) basic")
    assert [s.id for s in result] == [1]


def test_filter_keeps_original_order():
    result = filter_services(SERVICES, "profile")
    assert [s.id for s in result] == [1, 2, 3]


def test_no_match_returns_empty():
    assert filter_services(SERVICES, "mri") == []


def test_get_service():
    assert get_service(SERVICES, "Lipid Profile").price == "₹450"
    assert get_service(SERVICES, "Unknown") is None


def test_rate_list_csv():
    df = rate_list_frame(SERVICES)
    assert list(df.columns) == ["Test", "Details", "Price"]
    assert len(df) == 5

    csv = rate_list_csv(SERVICES).decode("utf-8")
    assert csv.splitlines()[0] == "Test,Details,Price"
    assert "COVID-19 RT-PCR" in csv
