"""Unit tests for import sources and file checksums."""

import hashlib

import pandas as pd
import pytest

from sqlmodel_importer.base.sources import BaseSource, CsvSource, DataFrameSource, validate_columns
from sqlmodel_importer.exceptions import EmptySourceError, MissingColumnsError, SourceError
from sqlmodel_importer.utils.checksum import file_checksum


class TestFileChecksum:
    """Test file_checksum helper"""

    def test_matches_hashlib_sha256(self, write_csv):
        path = write_csv("a,b\n1,2\n")

        assert file_checksum(path) == hashlib.sha256(b"a,b\n1,2\n").hexdigest()

    def test_small_chunks_give_same_digest(self, write_csv):
        path = write_csv("a,b\n" + "1,2\n" * 100)

        assert file_checksum(path, chunk_size=7) == file_checksum(path)

    def test_other_algorithm(self, write_csv):
        path = write_csv("x\n1\n")

        assert file_checksum(path, algorithm="md5") == hashlib.md5(b"x\n1\n").hexdigest()

    def test_missing_file_raises_source_error(self, tmp_path):
        with pytest.raises(SourceError):
            file_checksum(tmp_path / "missing.csv")


class TestBaseSource:
    """Test BaseSource abstract class"""

    def test_base_source_is_abstract(self):
        with pytest.raises(TypeError):
            BaseSource("x")

    def test_repr(self):
        assert repr(DataFrameSource(pd.DataFrame({"a": [1]}), name="api")) == "DataFrameSource('api')"


class TestCsvSource:
    """Test CsvSource reading"""

    def test_reads_all_values_as_strings(self, write_csv):
        path = write_csv("id,price,code\n1,4.50,007\n2,10,010\n")

        df = CsvSource(path).read()

        assert list(df.columns) == ["id", "price", "code"]
        assert df["code"].tolist() == ["007", "010"]
        assert df["price"].tolist() == ["4.50", "10"]

    def test_empty_cells_are_empty_strings(self, write_csv):
        path = write_csv("id,name\n1,\n2,NA\n")

        df = CsvSource(path).read()

        # "NA" is data, not a null marker
        assert df["name"].tolist() == ["", "NA"]

    def test_strips_header_whitespace(self, write_csv):
        path = write_csv(" id , name \n1,Alice\n")

        df = CsvSource(path).read()

        assert list(df.columns) == ["id", "name"]

    def test_custom_delimiter(self, write_csv):
        path = write_csv("id;name\n1;Alice\n")

        df = CsvSource(path, delimiter=";").read()

        assert df["name"].tolist() == ["Alice"]

    def test_name_and_line_numbers(self, write_csv):
        source = CsvSource(write_csv("id\n1\n2\n", name="feed.csv"))

        df = source.read()

        assert source.name == "feed.csv"
        assert df.index.tolist() == [2, 3]
        assert df.index.name == "line_number"

    def test_blank_lines_are_skipped_but_counted(self, write_csv):
        path = write_csv("id,name\n1,A\n\n2,B\n   \n3,C\n")

        df = CsvSource(path).read()

        assert df["id"].tolist() == ["1", "2", "3"]
        assert df.index.tolist() == [2, 4, 6]

    def test_multi_line_field_keeps_its_first_line(self, write_csv):
        path = write_csv('id,note\n1,"first\nsecond"\n2,plain\n')

        df = CsvSource(path).read()

        assert df["note"].tolist() == ["first\nsecond", "plain"]
        assert df.index.tolist() == [2, 4]

    def test_blank_lines_before_header(self, write_csv):
        df = CsvSource(write_csv("\n\nid\n1\n")).read()

        assert list(df.columns) == ["id"]
        assert df.index.tolist() == [4]

    def test_short_rows_are_padded(self, write_csv):
        df = CsvSource(write_csv("id,name,city\n1,A\n")).read()

        assert df.loc[2].tolist() == ["1", "A", ""]

    def test_too_many_fields(self, write_csv):
        with pytest.raises(SourceError, match="line 3: expected 2 fields, found 3"):
            CsvSource(write_csv("id,name\n1,A\n2,B,extra\n")).read()

    def test_duplicate_header(self, write_csv):
        with pytest.raises(SourceError, match="duplicate columns"):
            CsvSource(write_csv("id,name,id\n1,A,2\n")).read()

    def test_byte_order_mark_is_dropped(self, tmp_path):
        path = tmp_path / "bom.csv"
        path.write_bytes("id,name\n1,A\n".encode("utf-8-sig"))

        df = CsvSource(path).read()

        assert list(df.columns) == ["id", "name"]

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "latin1.csv"
        path.write_bytes("id,name\n1,Jos\xe9\n".encode("latin-1"))

        with pytest.raises(SourceError, match="Cannot parse"):
            CsvSource(path).read()

        assert CsvSource(path, encoding="latin-1").read()["name"].tolist() == ["José"]

    def test_checksum_is_file_checksum(self, write_csv):
        path = write_csv("id\n1\n")

        assert CsvSource(path).checksum() == file_checksum(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceError, match="not found"):
            CsvSource(tmp_path / "nope.csv").read()

    def test_empty_file(self, write_csv):
        with pytest.raises(EmptySourceError):
            CsvSource(write_csv("")).read()

    def test_header_only_file(self, write_csv):
        with pytest.raises(EmptySourceError, match="no data rows"):
            CsvSource(write_csv("id,name\n")).read()

    def test_empty_source_error_is_source_error(self):
        assert issubclass(EmptySourceError, SourceError)


class TestDataFrameSource:
    """Test DataFrameSource"""

    def test_rows_numbered_from_one(self):
        df = DataFrameSource(pd.DataFrame({"a": ["x", "y"]}, index=[10, 20])).read()

        assert df.index.tolist() == [1, 2]

    def test_read_returns_copy(self):
        df = pd.DataFrame({"a": ["1", "2"]})
        source = DataFrameSource(df, name="api")

        result = source.read()
        result.loc[0, "a"] = "changed"

        assert df.loc[0, "a"] == "1"
        assert source.name == "api"

    def test_checksum_is_stable(self):
        a = DataFrameSource(pd.DataFrame({"a": ["1", "2"]}))
        b = DataFrameSource(pd.DataFrame({"a": ["1", "2"]}))

        assert a.checksum() == b.checksum()

    def test_checksum_changes_with_content(self):
        a = DataFrameSource(pd.DataFrame({"a": ["1", "2"]}))
        b = DataFrameSource(pd.DataFrame({"a": ["1", "3"]}))
        c = DataFrameSource(pd.DataFrame({"b": ["1", "2"]}))

        assert a.checksum() != b.checksum()
        assert a.checksum() != c.checksum()

    def test_empty_dataframe(self):
        with pytest.raises(EmptySourceError):
            DataFrameSource(pd.DataFrame({"a": []})).read()


class TestValidateColumns:
    """Test required column validation"""

    def test_all_present(self):
        validate_columns(pd.DataFrame(columns=["a", "b", "c"]), ["a", "c"])

    def test_missing_columns_listed_in_required_order(self):
        df = pd.DataFrame(columns=["b"])

        with pytest.raises(MissingColumnsError) as exc_info:
            validate_columns(df, ["c", "b", "a"])

        assert exc_info.value.missing == ["c", "a"]
        assert exc_info.value.available == ["b"]
        assert "c, a" in str(exc_info.value)
