import json

from erranza.cli import main


def test_cli_traits_json(tmp_path, capsys):
    path = tmp_path / "answers.json"
    path.write_text(json.dumps({"Q4": 80, "Q5": 75, "Q6": 70, "Q7": 20, "Q41": ["wellness", "nature"]}), encoding="utf-8")

    assert main(["traits", "--responses", str(path), "--json"]) == 0
    data = json.loads(capsys.readouterr().out)

    assert data["traits"]["sensory_priorities"][0]["category"] == "wellness"
    assert "tribe" in data["profile"]


def test_cli_match_from_respondent_export(capsys):
    code = main(
        [
            "match",
            "--respondents",
            "data/respondents/responses.json",
            "--respondent-id",
            "resp-restorer",
            "--max-results",
            "2",
            "--json",
        ]
    )
    data = json.loads(capsys.readouterr().out)

    assert code == 0
    assert data["respondent_id"] == "resp-restorer"
    assert len(data["results"]) == 2
    assert data["traits"]["sensory_priorities"][0]["category"] == "wellness"


def test_cli_match_unknown_respondent(capsys):
    code = main(["match", "--respondents", "data/respondents/responses.json", "--respondent-id", "nobody"])

    assert code == 2
    assert "Unknown respondent 'nobody'" in capsys.readouterr().err


def test_cli_match_text_output(tmp_path, capsys):
    path = tmp_path / "answers.json"
    path.write_text(json.dumps({"Q4": 20, "Q5": 20}), encoding="utf-8")

    assert main(["match", "--responses", str(path), "--country", "portugal"]) == 0
    out = capsys.readouterr().out

    assert "Top matches:" in out
    assert "Portugal" in out
