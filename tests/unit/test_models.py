"""Unit tests for AUR data models and the category/action tables."""

import pytest
from pydantic import ValidationError

from aurtool.models import (
    ACTIONS,
    CATEGORIES,
    CATEGORY_NAMES,
    UNKNOWN_UPLOAD_ERROR,
    UNRESOLVED,
    Package,
    Session,
    UploadOutcome,
    category_index,
    category_name,
)

from conftest import package_record


class TestCategoryTable:
    """Test category ordinal lookups."""

    def test_reserved_ordinals_have_no_name(self):
        """Ordinals 0 and 1 are reserved and map to no category."""
        assert category_name(0) is None
        assert category_name(1) is None

    def test_known_ordinals(self):
        assert category_name(2) == "daemons"
        assert category_name(12) == "multimedia"
        assert category_name(18) == "xfce"
        assert category_name(19) == "kernels"

    def test_out_of_range_ordinal_returns_none(self):
        assert category_name(len(CATEGORIES)) is None
        assert category_name(-1) is None

    @pytest.mark.parametrize("index", range(2, 19))
    def test_name_and_index_are_inverse(self, index):
        """Every named ordinal maps back to the same index string."""
        assert category_index(category_name(index)) == str(index)

    def test_unknown_category_name(self):
        assert category_index("nonsense") is None

    def test_category_names_exclude_reserved(self):
        assert None not in CATEGORY_NAMES
        assert CATEGORY_NAMES[0] == "daemons"


class TestActionTable:
    """Test the action symbol table."""

    def test_action_identifiers(self):
        assert ACTIONS["vote"] == "do_Vote"
        assert ACTIONS["unflag"] == "do_UnFlag"
        assert len(ACTIONS) == 9

    def test_action_table_is_read_only(self):
        with pytest.raises(TypeError):
            ACTIONS["hack"] = "do_Hack"


class TestPackage:
    """Test normalization of raw RPC records into Package models."""

    def test_normalizes_string_fields(self):
        package = Package.model_validate(package_record())

        assert package.id == 1234
        assert package.name == "x264-git"
        assert package.category == "multimedia"
        assert package.num_votes == 42
        assert package.out_of_date is False

    def test_out_of_date_only_when_flag_is_one(self):
        assert Package.model_validate(package_record(OutOfDate="1")).out_of_date
        assert not Package.model_validate(package_record(OutOfDate="2")).out_of_date
        assert not Package.model_validate(package_record(OutOfDate=None)).out_of_date
        assert not Package.model_validate(package_record(OutOfDate=True)).out_of_date
        assert not Package.model_validate(package_record(OutOfDate=1)).out_of_date

    def test_missing_votes_default_to_zero(self):
        record = package_record()
        del record["NumVotes"]
        assert Package.model_validate(record).num_votes == 0
        assert Package.model_validate(package_record(NumVotes="")).num_votes == 0

    def test_negative_votes_are_rejected(self):
        with pytest.raises(ValidationError):
            Package.model_validate(package_record(NumVotes="-3"))

    def test_reserved_or_unknown_category_is_none(self):
        assert Package.model_validate(package_record(CategoryID="1")).category is None
        assert Package.model_validate(package_record(CategoryID="99")).category is None
        assert Package.model_validate(package_record(CategoryID="abc")).category is None

    def test_null_text_fields_become_empty(self):
        package = Package.model_validate(package_record(Description=None, URL=None))
        assert package.description == ""
        assert package.url == ""

    def test_unknown_wire_fields_are_ignored(self):
        package = Package.model_validate(package_record())
        assert not hasattr(package, "URLPath")

    def test_maintainer_is_optional(self):
        assert Package.model_validate(package_record()).maintainer is None
        package = Package.model_validate(package_record(Maintainer="someone"))
        assert package.maintainer == "someone"

    def test_package_is_frozen(self):
        package = Package.model_validate(package_record())
        with pytest.raises(ValidationError):
            package.name = "other"


class TestSession:
    """Test the session token value."""

    def test_usable_only_with_marker(self):
        assert Session(cookie="AURSID=abc").is_usable
        assert not Session(cookie="PHPSESSID=abc").is_usable
        assert not Session(cookie="").is_usable

    def test_cookie_header_from_set_cookie_text(self):
        session = Session(cookie="AURSID=abc123; path=/; HttpOnly")
        assert session.cookie_header == "AURSID=abc123"

    def test_cookie_header_finds_marker_after_other_cookies(self):
        session = Session(cookie="lang=en; path=/, AURSID=xyz; path=/")
        assert session.cookie_header == "AURSID=xyz"

    def test_cookie_not_in_repr(self):
        session = Session(cookie="AURSID=secret", username="tester")
        assert "secret" not in repr(session)
        assert "tester" in repr(session)


class TestUploadOutcome:
    """Test upload outcome descriptions."""

    def test_success(self):
        outcome = UploadOutcome(filename="foo.src.tar.gz", package_id=4521)
        assert outcome.succeeded
        assert outcome.describe() == "Uploaded foo.src.tar.gz [4521]"

    def test_service_message(self):
        outcome = UploadOutcome(filename="foo.src.tar.gz", message="Duplicate package")
        assert not outcome.succeeded
        assert outcome.describe() == "Duplicate package"

    def test_unresolved(self):
        outcome = UploadOutcome(filename="foo.src.tar.gz", unresolved=True)
        assert outcome.describe() == UNKNOWN_UPLOAD_ERROR

    def test_unresolved_marker_is_falsy(self):
        assert not UNRESOLVED
