from enhancer.generation.fallback import extract_key_points, fallback_rewrite, split_chunks
from enhancer.models import AcquiredReference


def test_short_paragraphs_are_dropped():
    body = "Para one here now.\n\nPara two with more than twenty chars."

    text = fallback_rewrite("Chatbots", body, [])

    assert text.startswith("# Chatbots\n")
    assert text.count("## Section ") == 1
    assert "## Section 1\n\nPara two with more than twenty chars." in text
    assert "Para one here now." not in text
    assert "## Key Takeaways" in text
    assert text.endswith("## References\n")


def test_empty_input_yields_skeleton():
    text = fallback_rewrite("", "", [])

    assert text.startswith("# Untitled Article")
    assert "## Section" not in text
    assert "no body content" in text
    assert text.endswith("## References\n")


def test_output_is_deterministic():
    reference = AcquiredReference(
        title="Support Automation Guide",
        url="https://example.com/guide",
        extracted_content="Body",
        domain="example.com",
    )
    body = "First paragraph with enough characters.\n\nSecond paragraph with enough characters too."

    first = fallback_rewrite("Support", body, [reference])
    second = fallback_rewrite("Support", body, [reference])

    assert first == second
    assert first.rstrip().endswith("- Support Automation Guide — example.com (https://example.com/guide)")


def test_key_points_for_long_chunks():
    sentence = "Chatbots resolve routine questions without waiting for an agent."
    chunk = " ".join([sentence] * 6)

    points = extract_key_points(chunk)

    assert len(points) == 3
    assert all(point == sentence for point in points)
    assert "**Key Points:**" in fallback_rewrite("Bots", chunk, [])


def test_short_chunk_has_no_key_points():
    assert extract_key_points("A short paragraph. With two sentences.") == []


def test_split_chunks_handles_whitespace_only_lines():
    body = "A paragraph that is long enough.\n   \nAnother paragraph that is long enough."

    assert split_chunks(body) == [
        "A paragraph that is long enough.",
        "Another paragraph that is long enough.",
    ]
