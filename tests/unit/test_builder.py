"""Unit tests for MessageBuilder."""

import pytest
from fakes import RecordingTransport

from aipim import Client
from aipim.config import AipimConfig
from aipim.content import Image, Text
from aipim.errors import BuilderReused, EmptyMessage, InvalidContent


@pytest.fixture
def client(config, transport):
    return Client("gpt-4o", api_key="sk-test", config=config, transport=transport)


class TestAccumulation:
    """Tests for appending content."""

    def test_text_items_in_call_order(self, client):
        builder = client.message().text("one").text("two").text("three")
        assert builder.contents == (Text("one"), Text("two"), Text("three"))

    def test_mixed_content_order(self, client):
        builder = client.message().text("look").image(b"png-bytes", "image/png").text("at this")
        assert builder.contents == (
            Text("look"),
            Image(mime_type="image/png", data=b"png-bytes"),
            Text("at this"),
        )

    def test_image_accepts_bytearray(self, client):
        builder = client.message().image(bytearray(b"abc"), "image/gif")
        assert builder.contents[0].data == b"abc"

    def test_empty_image_rejected(self, client):
        builder = client.message()
        with pytest.raises(InvalidContent, match="must not be empty"):
            builder.image(b"", "image/png")
        assert builder.contents == ()

    @pytest.mark.parametrize("data", [5, "iVBORw0K", None, [137, 80]])
    def test_image_rejects_non_bytes(self, client, data):
        builder = client.message()
        with pytest.raises(InvalidContent, match="must be bytes"):
            builder.image(data, "image/png")
        assert builder.contents == ()

    def test_image_accepts_memoryview(self, client):
        builder = client.message().image(memoryview(b"xyz"), "image/png")
        assert builder.contents[0].data == b"xyz"

    def test_image_url(self, client):
        builder = client.message().image_url("https://example.com/a.png", "image/png")
        assert builder.contents[0].uri == "https://example.com/a.png"

    def test_image_file(self, client, tmp_path):
        path = tmp_path / "form.jpg"
        path.write_bytes(b"jpeg-bytes")
        builder = client.message().image_file(path)
        assert builder.contents == (Image(mime_type="image/jpeg", data=b"jpeg-bytes"),)

    def test_image_file_unsupported(self, client, tmp_path):
        path = tmp_path / "form.bmp"
        path.write_bytes(b"bmp")
        with pytest.raises(InvalidContent, match="Unsupported image format"):
            client.message().image_file(path)

    def test_image_file_missing(self, client, tmp_path):
        with pytest.raises(InvalidContent):
            client.message().image_file(tmp_path / "nope.png")

    def test_contents_snapshot_is_immutable(self, client):
        builder = client.message().text("a")
        snapshot = builder.contents
        builder.text("b")
        assert snapshot == (Text("a"),)


class TestPrompt:
    def test_prompt_from_config_dir(self, tmp_path, transport):
        prompts = tmp_path / "prompts"
        prompts.mkdir()
        (prompts / "blank_form.txt").write_text("Fill in the form.", encoding="utf-8")
        client = Client(
            "gpt-4o",
            api_key="sk-test",
            config=AipimConfig(prompt_path=prompts),
            transport=transport,
        )

        builder = client.message().prompt("blank_form")

        assert builder.contents == (Text("Fill in the form."),)

    def test_prompt_without_directory(self, client):
        with pytest.raises(InvalidContent, match="PROMPT_PATH"):
            client.message().prompt("anything")

    def test_missing_prompt_file(self, tmp_path, transport):
        client = Client(
            "gpt-4o",
            api_key="sk-test",
            config=AipimConfig(prompt_path=tmp_path),
            transport=transport,
        )
        with pytest.raises(InvalidContent, match="missing"):
            client.message().prompt("missing")


class TestSend:
    """Tests for send() validation and single use."""

    @pytest.fixture
    def client(self, make_client):
        return make_client(api_key="sk-test")

    @pytest.mark.asyncio
    async def test_empty_message_makes_no_request(self, client, transport):
        with pytest.raises(EmptyMessage):
            await client.message().send()
        assert transport.calls == 0

    @pytest.mark.asyncio
    async def test_empty_message_can_be_fixed(self, client, transport):
        builder = client.message()
        with pytest.raises(EmptyMessage):
            await builder.send()
        response = await builder.text("now with text").send()
        assert response.text == "Hi there"
        assert transport.calls == 1

    @pytest.mark.asyncio
    async def test_second_send_rejected(self, client, transport):
        builder = client.message().text("hello")
        await builder.send()

        with pytest.raises(BuilderReused):
            await builder.send()
        assert transport.calls == 1

    @pytest.mark.asyncio
    async def test_append_after_send_rejected(self, client):
        builder = client.message().text("hello")
        await builder.send()

        with pytest.raises(BuilderReused):
            builder.text("more")
        with pytest.raises(BuilderReused):
            builder.image(b"x", "image/png")
        with pytest.raises(BuilderReused):
            builder.temperature(0.1)
        assert builder.sent

    @pytest.mark.asyncio
    async def test_builder_marked_used_after_failed_send(self, make_client):
        transport = RecordingTransport(status_code=500)
        client = make_client(api_key="sk-test", transport=transport)
        builder = client.message().text("hello")

        with pytest.raises(Exception):
            await builder.send()
        with pytest.raises(BuilderReused):
            await builder.send()
        assert transport.calls == 1

    @pytest.mark.asyncio
    async def test_options_reach_the_body(self, client, transport):
        await (
            client.message()
            .text("hello")
            .temperature(0.3)
            .max_tokens(64)
            .option("seed", 42)
            .send()
        )
        body = transport.last_json()
        assert body["temperature"] == 0.3
        assert body["max_tokens"] == 64
        assert body["seed"] == 42

    @pytest.mark.asyncio
    async def test_model_override(self, client, transport):
        await client.message().model("gpt-4o-mini").text("hello").send()
        assert transport.last_json()["model"] == "gpt-4o-mini"
