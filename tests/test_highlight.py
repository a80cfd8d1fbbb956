from reportdiff.core.diff import escape_html, parse_row_anchor, row_anchor


def test_escape_html():
    assert escape_html('<b>"R&D"</b>') == '&lt;b&gt;&quot;R&amp;D&quot;&lt;/b&gt;'
    assert escape_html("line1\nline2\r\nline3") == "line1<br />line2<br />line3"
    assert escape_html("") == ""
    assert escape_html(None) == ""


def test_row_anchor_round_trip():
    assert row_anchor(12) == "line-12"
    assert parse_row_anchor("line-12") == 12
    assert parse_row_anchor("other") is None
    assert parse_row_anchor("line-x") is None


def test_unchanged_rows_identical_on_both_sides(engine):
    markup = engine.generate_highlighted_html(engine.compare_texts("a\nb", "a\nb"))

    assert markup.original_html == markup.edited_html
    rows = markup.original_html.split('\n')
    assert len(rows) == 2
    assert rows[0].startswith('<div class="diff-line diff-unchanged" data-line="1">')
    assert 'name="line-1"' in rows[0]
    assert rows[0].endswith('a</div>')


def test_added_row_only_in_edited(engine):
    markup = engine.generate_highlighted_html(engine.compare_texts("a", "a\nnew"))

    assert 'diff-added' not in markup.original_html
    assert markup.original_html.count('<div') == 1
    assert '<div class="diff-line diff-added" data-line="2">' in markup.edited_html
    assert 'new</div>' in markup.edited_html


def test_removed_row_only_in_original(engine):
    markup = engine.generate_highlighted_html(engine.compare_texts("a\nold", "a"))

    assert '<div class="diff-line diff-removed" data-line="2">' in markup.original_html
    assert 'diff-removed' not in markup.edited_html


def test_modified_row_word_highlights(engine):
    markup = engine.generate_highlighted_html(
        engine.compare_texts("the quick fox", "the slow fox jumps")
    )

    original = markup.original_html
    edited = markup.edited_html
    assert 'diff-modified' in original and 'diff-modified' in edited
    assert '<span class="diff-word-modified">quick</span>' in original
    assert '<span class="diff-word-modified">slow</span>' in edited
    # Added tokens are only shown on the edited side
    assert '<span class="diff-word-added">jumps</span>' in edited
    assert 'jumps' not in original
    assert 'diff-word-added' not in original


def test_removed_words_only_on_original_side(engine):
    markup = engine.generate_highlighted_html(
        engine.compare_texts("alpha beta gamma", "alpha beta")
    )

    assert '<span class="diff-word-removed">gamma</span>' in markup.original_html
    assert 'gamma' not in markup.edited_html


def test_content_is_escaped(engine):
    markup = engine.generate_highlighted_html(engine.compare_texts("<x>", "<y> & z"))

    assert '<x>' not in markup.original_html
    assert '&lt;x&gt;' in markup.original_html
    assert '&lt;y&gt;' in markup.edited_html
    assert '&amp;' in markup.edited_html


def test_degenerate_record_is_one_row(engine):
    markup = engine.generate_highlighted_html(engine.compare_texts("", "one\ntwo\nthree"))

    assert markup.original_html == ''
    assert markup.edited_html.count('\n') == 0
    assert 'one<br />two<br />three' in markup.edited_html
