from skyquery.docgen import front_matter, link_handler


def test_front_matter_full_example():
    assert front_matter("docs/cloudquery_policy_run.md") == (
        '---\nid: "policy_run"\nhide_title: true\nsidebar_label: "policy run"\n---\n'
    )


def test_front_matter_without_prefix_keeps_name():
    out = front_matter("out/fetch.md")
    assert 'id: "fetch"' in out
    assert 'sidebar_label: "fetch"' in out


def test_front_matter_structure():
    out = front_matter("cloudquery_provider_sync.md")
    lines = out.splitlines()
    assert lines[0] == "---"
    assert lines[-1] == "---"
    assert "hide_title: true" in lines
    assert out.endswith("\n")


def test_link_handler_identity():
    assert link_handler("cloudquery_fetch.md") == "cloudquery_fetch.md"