import pytest

from beehive.contexts.classification import (
    DEFAULT_CATEGORY,
    DEFAULT_JOB_TYPE,
    infer_category,
    infer_job_type,
)


@pytest.mark.parametrize(
    "title, description, expected",
    [
        ("Senior Software Engineer", "", "full-time"),
        ("Product Manager", "This is a full time role.", "full-time"),
        ("Part-time Barista", "", "part-time"),
        ("Contract Data Analyst", "", "contract"),
        ("Marketing Intern", "Summer internship", "internship"),
        ("Freelance Copywriter", "", "freelance"),
        # earlier rules win
        ("Full-time or part-time Cashier", "", "full-time"),
        ("Part-time contract developer", "", "part-time"),
    ],
)
def test_infer_job_type(title, description, expected):
    assert infer_job_type(title, description) == expected


@pytest.mark.parametrize(
    "title, description, expected",
    [
        ("Senior Software Engineer", "", "Engineering"),
        ("Growth Marketing Lead", "", "Marketing"),
        ("Account Executive", "Own the full sales cycle", "Sales"),
        ("UX Designer", "", "Design"),
        ("Product Owner", "", "Product"),
        ("Contract Data Analyst", "", "Data"),
        ("DevOps Lead", "", "DevOps"),
        ("Barista", "Make coffee", "Other"),
        # earlier rules win
        ("Data Engineer", "", "Engineering"),
    ],
)
def test_infer_category(title, description, expected):
    assert infer_category(title, description) == expected


def test_case_insensitive():
    assert infer_job_type("CONTRACT ROLE", "") == "contract"
    assert infer_category("SOFTWARE LEAD", "") == "Engineering"


def test_defaults():
    assert infer_job_type("", "") == DEFAULT_JOB_TYPE == "full-time"
    assert infer_category("", "") == DEFAULT_CATEGORY == "Other"


def test_description_only_match():
    assert infer_category("Associate", "Work with our data science team") == "Data"


def test_none_description_is_tolerated():
    assert infer_category("Software Developer", None) == "Engineering"
