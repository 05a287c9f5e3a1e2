"""Example: walking every sheet of a local workbook."""

import xlsx_text

with xlsx_text.open("examples/Report.xlsx") as reader:
    print("Source metadata:", reader.get_metadata())
    print("Sheets:", reader.sheet_names())

    while reader.advance_sheet():
        sheet = reader.sheet
        print(f"\n--- {reader.sheet_name} ---")
        while sheet.advance_row():
            print(", ".join(f"{cell.reference}={cell.value!r}" for cell in sheet.current_row()))

# # Or export one sheet to CSV
# with xlsx_text.open("examples/Report.xlsx") as reader:
#     reader.to_csv("output.csv", sheet_name="Summary")
