#!/usr/bin/env python3
"""Basic usage example for podwire.

This example demonstrates:
1. Declaring records and a tagged union with Pydantic
2. Encoding to the plain-old-data layout
3. Decoding back to Pydantic models
4. Calculating value sizes
"""

from __future__ import annotations

from podwire import (
    I16,
    U8,
    U16,
    U32,
    PodField,
    Record,
    TaggedUnion,
    TagRange,
    decode,
    encode,
    encoded_size,
    field_sizes,
)


class Header(Record):
    """Packet header, identified by a magic value."""

    pod_directives = {"endianness": "big", "magic": ("u16", 0xCAFE)}

    sequence: U32
    source: U8


class Payload(TaggedUnion):
    """Packet body, selected by a one-byte discriminant."""

    pod_directives = {"tag_type": "u8", "endianness": "big"}


class Temperature(Payload):
    pod_directives = {"tag": 1}

    centi_celsius: I16


class Samples(Payload):
    pod_directives = {"tag": 2, "size_type": "u16"}

    values: list[U16]


class Vendor(Payload):
    """Vendor-specific codes 0x80..0xFF keep their code as first field."""

    pod_directives = {"tag": TagRange(0x80, 0xFF), "keep_tag": True}

    code: U8
    data: bytes = PodField(size_type="u8")


class Packet(Record):
    header: Header
    payload: Payload


def main() -> None:
    """Run the basic usage example."""
    print("=" * 60)
    print("podwire Basic Usage Example")
    print("=" * 60)
    print()

    # Create a packet
    print("1. Creating a packet...")
    packet = Packet(
        header=Header(sequence=7, source=3),
        payload=Samples(values=[100, 200, 300]),
    )
    print(f"   {packet!r}")
    print()

    # Analyze field sizes
    print("2. Analyzing field sizes...")
    for field_name, size in field_sizes(packet).items():
        print(f"   {field_name}: {size} bytes")
    print(f"   Total: {encoded_size(packet)} bytes")
    print()

    # Encode the packet
    print("3. Encoding...")
    encoded_data = encode(packet)
    print(f"   Encoded size: {len(encoded_data)} bytes")
    print(f"   Hex: {encoded_data.hex(' ')}")
    print()

    # Decode the packet
    print("4. Decoding...")
    decoded = decode(Packet, encoded_data)
    print(f"   {decoded!r}")
    print()

    # Verify round-trip
    print("5. Verifying round-trip...")
    if decoded == packet:
        print("   ✓ Round-trip successful! Packets match.")
    else:
        print("   ✗ Round-trip failed! Packets don't match.")
    print()

    # A vendor payload keeps its discriminant as a field
    print("6. Decoding a vendor payload...")
    vendor = decode(Payload, bytes([0x9A, 0x02, 0xDE, 0xAD]))
    print(f"   {vendor!r}")
    print()

    print("=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
