import tempfile as tmp
import zipfile
import shutil
import subprocess
from pathlib import Path

import functions_framework

from assistant.handle_request import Turn, respond_to_turn
from notifications.dispatcher import dispatch_latest_tip_notifications
from notifications.events import tip_from_event_data
from tips.database import init_db
from util.constants import GCP_PROJECT, REPO_ROOT
from util.logging_util import setup_logger

LOGGER = setup_logger(__name__)

GCP_FUNCTION_ZIPFILE_NAME = "aog_tips.zip"
GCP_REGION = "europe-west1"
TIP_CREATED_TOPIC = "tip-created"

_DB_READY = False


def ensure_db():
    """Create the schema the first time this process handles a request."""
    global _DB_READY
    if not _DB_READY:
        init_db()
        _DB_READY = True


@functions_framework.http
def aog_tips(request):
    """HTTP Cloud Function handling one conversational turn.
    Args:
        request (flask.Request): The request object.
        <https://flask.palletsprojects.com/en/1.1.x/api/#incoming-request-data>
    """

    if request.method != 'POST':
        LOGGER.error("Unsupported request method")
        return ''

    request_json = request.get_json(silent=True)
    try:
        turn = Turn(request_json)
    except ValueError as e:
        LOGGER.error(f"Malformed turn request: {e}")
        return ''

    ensure_db()
    return respond_to_turn(turn)


@functions_framework.cloud_event
def tip_created(cloud_event):
    """Event-triggered Cloud Function sending push notifications for a new tip.

    A failed token exchange or store read propagates, so the platform's
    retry policy for the event applies.
    """
    ensure_db()
    tip = tip_from_event_data(cloud_event.data)
    LOGGER.info(f"Tip {tip.id} created in category '{tip.category}'")
    report = dispatch_latest_tip_notifications(tip)
    LOGGER.info(f"Sent {report.delivered} notification(s), {report.failed} failed")


def create_gcp_function_zipfile():
    """
    Function to upload all of the cloud functions to blob storage, so that we can
    deploy the cloud function
    """
    tmpdir = Path(tmp.mkdtemp())

    zipfile_path = tmpdir / GCP_FUNCTION_ZIPFILE_NAME

    zipped = zipfile.ZipFile(  # pylint: disable=consider-using-with
        zipfile_path, "w", zipfile.ZIP_DEFLATED
    )

    # upload the relevant code directories
    for directory in ["assistant", "notifications", "tips", "gcp_util", "util"]:
        for f in (REPO_ROOT / directory).iterdir():
            if not str(f).endswith(".py"):
                continue
            zipped.write(str(f), f"{directory}/{f.name}")

    zipped.write(REPO_ROOT / "requirements.txt", "requirements.txt")
    zipped.write(REPO_ROOT / "main.py", "main.py")
    zipped.close()

    Path('./build').mkdir(exist_ok=True)
    shutil.copy(zipfile_path, f'./build/{GCP_FUNCTION_ZIPFILE_NAME}')
    shutil.rmtree(tmpdir)

def deploy_cloud_function(function_name, runtime, entry_point, source_dir, region, project,
                          trigger_topic=None):
    # Build the gcloud command
    command = [
        "gcloud", "functions", "deploy", function_name,
        "--runtime", runtime,
        "--entry-point", entry_point,
        "--source", source_dir,
        "--region", region,
        "--project", project,
        "--gen2",
    ]
    if trigger_topic is None:
        command += ["--trigger-http", "--allow-unauthenticated"]
    else:
        command += ["--trigger-topic", trigger_topic]

    # Run the gcloud command
    result = subprocess.run(command, capture_output=True, text=True)

    if result.returncode == 0:
        LOGGER.info(f"Function {function_name} deployed successfully!")
    else:
        LOGGER.error(f"Failed to deploy function {function_name}: {result.stderr}")
    return result.returncode == 0

if __name__ == "__main__":

    LOGGER.info("Creating the GCP function zipfile")
    create_gcp_function_zipfile()
    LOGGER.info("Deploying the turn webhook")
    deploy_cloud_function(
        function_name="aog_tips",
        runtime="python312",
        entry_point="aog_tips",
        source_dir=".",
        region=GCP_REGION,
        project=GCP_PROJECT,
    )
    LOGGER.info("Deploying the tip notification dispatcher")
    deploy_cloud_function(
        function_name="tip_created",
        runtime="python312",
        entry_point="tip_created",
        source_dir=".",
        region=GCP_REGION,
        project=GCP_PROJECT,
        trigger_topic=TIP_CREATED_TOPIC,
    )
