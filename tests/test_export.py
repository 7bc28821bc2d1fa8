import json

from pagescraper.export import to_csv, to_json
from pagescraper.models import Comment, Post


def test_json_uses_wire_keys():
    out = json.loads(to_json([Post(id="1", content="héllo", likes=3)]))
    assert out == [{
        "id": "1", "content": "héllo", "date": "", "postUrl": None,
        "likes": 3, "comments": 0, "shares": 0,
    }]


def test_json_keeps_unicode():
    assert "héllo" in to_json([Post(id="1", content="héllo")])


def test_csv_quotes_strings_only():
    rows = [Comment(id="c1", post_id="9", author='Jane "JD" Doe', content="a, b", likes=4)]
    lines = to_csv(rows).split("\n")
    assert lines[0] == "id,postId,author,authorId,content,date,likes"
    assert lines[1] == '"c1","9","Jane ""JD"" Doe",,"a, b","",4'


def test_csv_accepts_plain_dicts():
    assert to_csv([{"a": 1, "b": "x"}, {"a": 2}]) == 'a,b\n1,"x"\n2,'


def test_empty_inputs():
    assert to_csv([]) == ""
    assert json.loads(to_json([])) == []
