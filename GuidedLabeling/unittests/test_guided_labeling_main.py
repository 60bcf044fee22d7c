from guided_labeling_main import main
from GuidedLabeling.models.JobDB import JobStatus


def test_register_cli_prints_url(tmp_path, job_db, capsys):
    xml = tmp_path / "spec.xml"
    xml.write_text("<executable><title>t</title></executable>")
    assert main(["register-cli", "dsarchive/superpixel", "latest", "SuperpixelClassification", str(xml)]) == 0
    assert capsys.readouterr().out.strip().splitlines()[-1] == "dsarchive_superpixel_latest/SuperpixelClassification"
    assert "dsarchive/superpixel" in job_db.list_images()


def test_job_status_updates_the_registry(job_db):
    jid = job_db.add_job("job")
    assert main(["job-status", str(jid), "running"]) == 0
    assert job_db.get_job(jid)["status"] is JobStatus.RUNNING
