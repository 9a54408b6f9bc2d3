from pseudorun.modules.LineSplitter import split_lines


def test_empty_source_has_no_lines():
    assert split_lines("") == []

def test_lines_are_trimmed_and_indexed():
    lines = split_lines("  BEGIN\n\toutput \"Hi there\"  \nEND")
    assert [l.index for l in lines] == [0, 1, 2]
    assert lines[1].raw_text == 'output "Hi there"'
    assert lines[1].normalized_text == 'OUTPUT "HI THERE"'

def test_blank_lines_keep_their_index():
    lines = split_lines("BEGIN\n\n   \nEND")
    assert len(lines) == 4
    assert lines[3].keyword == "END"
    assert lines[1].is_blank() and lines[2].is_blank()

def test_keyword_and_arguments():
    line = split_lines("show   Hello World")[0]
    assert line.keyword == "SHOW"
    assert line.arguments == "Hello World"

def test_comment_lines_are_blank_only_with_prefix():
    line = split_lines("// note")[0]
    assert line.is_blank("//")
    assert not line.is_blank(None)

def test_crlf_line_endings():
    lines = split_lines("BEGIN\r\nEND\r\n")
    assert [l.raw_text for l in lines] == ["BEGIN", "END"]
