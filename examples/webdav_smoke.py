"""
Smoke test against a real WebDAV server: checks the credential, then
downloads one file through the file node.

Configuration is read the usual way (see davnodes.config), e.g.:

    DAV_URL=https://your-server/remote.php/dav \
    DAV_USERNAME=alice DAV_PASSWORD=secret \
    python examples/webdav_smoke.py "Files/Documents/report 2024.pdf"
"""
import logging
import sys

from davnodes import FileNode
from davnodes import LocalHost
from davnodes.config import get_credential
from davnodes.credentials import test_credential
from davnodes.lib import error


def run_smoke(path):
    credential = get_credential()
    if credential is None:
        print("No credential found.  Set DAV_URL, DAV_USERNAME and DAV_PASSWORD.")
        return 1

    ## 1) Credential/endpoint check
    try:
        status = test_credential(credential)
    except error.AuthorizationError:
        print("Authentication failed (401/403).  Check username, password and ACL.")
        return 1
    except error.DAVError as e:
        print("PROPFIND failed: %s" % e)
        return 1
    print("PROPFIND status: %i" % status)

    ## 2) GET the file
    host = LocalHost(
        parameters={"operation": "get", "path": path},
        credentials=credential,
    )
    try:
        [item] = FileNode().execute(host)
    except error.DAVError as e:
        print("GET failed: %s" % e)
        return 1
    binary = item.binary["data"]
    print("GET status: %s" % item.json["statusCode"])
    print("Content-Length: %i" % binary.file_size)
    print("Content-Type: %s" % binary.mime_type)
    print("OK")
    return 0


if __name__ == "__main__":
    if "-v" in sys.argv:
        sys.argv.remove("-v")
        logging.basicConfig()
        logging.getLogger("davnodes").setLevel(logging.DEBUG)
    sys.exit(run_smoke(sys.argv[1] if len(sys.argv) > 1 else "/"))
