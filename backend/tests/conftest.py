import pytest
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient


SAMPLE_CSV = (
    "Equipment Name,Type,Flowrate,Pressure,Temperature\n"
    "Pump-1,Pump,120,5.2,110\n"
    "Pump-2,Pump,,5.0,105\n"
    "Valve-1,Valve,60,4.1,n/a\n"
    ",,,,\n"
)


@pytest.fixture
def user(db):
    return get_user_model().objects.create_user(username="alice", password="secret123")


@pytest.fixture
def other_user(db):
    return get_user_model().objects.create_user(username="bob", password="secret123")


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def make_csv():
    def _make(content=SAMPLE_CSV, name="equipment.csv"):
        return SimpleUploadedFile(name, content.encode("utf-8"), content_type="text/csv")

    return _make
