"""Example: exporting a sheet stored in S3 to CSV."""

import boto3

from xlsx_text import XlsxTextReader

client = boto3.client("s3", region_name="us-east-1")

with XlsxTextReader("s3://my-bucket/reports/q3.xlsx", client=client) as reader:
    rows = reader.to_csv("q3.csv", sheet_name=reader.sheet_names()[0])
    print(f"Wrote {rows} rows to q3.csv")
